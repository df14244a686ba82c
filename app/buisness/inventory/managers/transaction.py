from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.buisness.inventory.errors import InventoryInfrastructureError
from app.logger import get_logger

logger = get_logger("equipment_inventory.buisness.inventory.transaction")


@contextmanager
def inventory_transaction(action: str):
    """
    Run one mutation as a single commit.

    Any exception rolls the whole session back. Datastore errors are
    re-raised as InventoryInfrastructureError, everything else unchanged.
    """
    try:
        yield
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{action} failed, transaction rolled back: {e}", exc_info=True)
        raise InventoryInfrastructureError(f"{action} failed: {e}") from e
    except Exception:
        db.session.rollback()
        raise
