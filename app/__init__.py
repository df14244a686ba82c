from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from sqlalchemy import event
import os
from app.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _enable_sqlite_savepoints(engine):
    """
    Let SQLAlchemy emit BEGIN itself on SQLite so SAVEPOINTs behave.

    pysqlite otherwise defers BEGIN until the first DML statement.
    """
    if engine.dialect.name != 'sqlite':
        return

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_app(config=None):
    """
    Create the Flask application that hosts the inventory engine.

    Args:
        config (dict, optional): Values applied on top of the environment
            derived configuration (tests pass an in-memory database here).
    """
    from pathlib import Path

    base_dir = Path(__file__).parent.parent
    instance_dir = base_dir / 'instance'

    app = Flask(__name__, instance_path=str(instance_dir))

    logger = get_logger("equipment_inventory")
    logger.info("Initializing Flask application")

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'equipment_inventory.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SQLALCHEMY_ECHO'] = _env_flag('DATABASE_ECHO')

    # Inventory engine settings
    app.config['DEFAULT_STORAGE_LOCATION'] = os.environ.get('DEFAULT_STORAGE_LOCATION', 'Lager')
    app.config['HISTORY_LIMIT'] = int(os.environ.get('HISTORY_LIMIT', '50'))
    app.config['LOW_AVAILABILITY_RATIO'] = float(os.environ.get('LOW_AVAILABILITY_RATIO', '0.2'))

    if config:
        app.config.update(config)

    # SECURITY: Require SECRET_KEY - no fallback
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    with app.app_context():
        _enable_sqlite_savepoints(db.engine)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from app.data.core.user_info.user import User
    from app.data.core.location import Location
    from app.data.core.event_info.event import Event
    from app.data.core.item_info.item import Item
    from app.data.inventory.allocations import LocationAllocation, EventAllocation
    from app.data.inventory.audit_entry import AuditEntry

    logger.info("Flask application ready")
    return app
