"""
Core registry models: users (actors), locations, events and items
"""
