"""
Services Layer
Read-only services used by callers of the inventory engine (CLI, HTTP layer).

Services should:
- Not modify data; mutations live in app.buisness.inventory
- Read from multiple data models to aggregate information
- Be stateless
"""
