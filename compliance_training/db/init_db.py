"""
Database initialization and seeding.
"""
import logging

from sqlalchemy.orm import Session

from compliance_training.models.user import Organization, User
from compliance_training.models.course import Course

logger = logging.getLogger(__name__)


def init_db(db: Session) -> None:
    """
    Initialize database with a demo organization.

    Args:
        db: Database session
    """
    # Check if admin user exists
    admin = db.query(User).filter(User.email == "admin@example.com").first()
    if admin:
        return

    organization = Organization(name="Demo Care Services")
    db.add(organization)
    db.flush()

    admin = User(
        email="admin@example.com",
        full_name="System Administrator",
        role="admin",
        organization_id=organization.id,
        is_active=True,
    )
    course = Course(
        title="Safeguarding Adults",
        organization_id=organization.id,
        objectives=[
            {"id": "obj-1", "text": "Recognise the signs of abuse"},
            {"id": "obj-2", "text": "Know how to report a concern"},
        ],
        pass_mark=80,
        max_attempts=3,
    )
    db.add_all([admin, course])
    db.commit()
    logger.info("Demo organization and admin user created successfully")
