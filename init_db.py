"""
Script to initialize the database with tables and seed data.
"""
import logging

from compliance_training.db.base import engine, SessionLocal
from compliance_training.db.init_db import init_db
from compliance_training.models import Base

logging.basicConfig(level=logging.INFO, format='%(levelname)s:\t%(name)s\t%(message)s')
logger = logging.getLogger(__name__)


def init() -> None:
    """Initialize database."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")

    logger.info("Seeding initial data...")
    db = SessionLocal()
    try:
        init_db(db)
        logger.info("Initial data seeded")
    finally:
        db.close()

    logger.info("Database initialization complete!")


if __name__ == "__main__":
    init()
