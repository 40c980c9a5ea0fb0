"""
Database session and base configuration.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from compliance_training.core.config import settings

# Configure engine with proper pooling for the hosted Postgres store
if settings.DATABASE_URL.startswith("sqlite"):
    # Local development and tests
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
elif settings.ENV == "production":
    # Production: Use pooler with transaction mode and strict limits
    engine = create_engine(
        settings.DATABASE_URL,
        poolclass=NullPool,  # No connection pooling for serverless
        pool_pre_ping=True,
        connect_args={
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        }
    )
else:
    # Development: Use small pool
    engine = create_engine(
        settings.DATABASE_URL,
        pool_size=5,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=3600
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
