import logging

from sqlalchemy_utils import database_exists, create_database

from .database_client import engine, SQLALCHEMY_DATABASE_URL
from ..models.base import Base
# imported for their side effect of registering tables on Base.metadata
from ..models import user, sql_property, sql_deal  # noqa: F401

logger = logging.getLogger(__name__)

#python -m backoffice.core.initialise_db to run this file directly
#on changing an enum you will have to drop that enum type by hand, e.g. DROP TYPE inventory_status;
def initialize_db(bind=None, url: str = SQLALCHEMY_DATABASE_URL):
    """Checks if the DB exists, creates it if necessary, and ensures all tables are created."""
    bind = bind if bind is not None else engine

    if not url.startswith("sqlite") and not database_exists(url):
        logger.info("Database not found. Creating database...")
        create_database(url)

    logger.info("Creating/Ensuring all tables exist...")
    Base.metadata.create_all(bind=bind)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    initialize_db()
