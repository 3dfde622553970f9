"""
Create the bootstrap admin account if it does not exist yet.

    python -m scripts.setup_admin [--email EMAIL] [--password PASSWORD]
"""
import argparse
import logging

from core.config import settings
from core.database import Base, SessionLocal, engine
from core.security import hash_password
from models.user import User

logger = logging.getLogger(__name__)


def setup_admin(db, email: str, password: str) -> tuple[User, bool]:
    """Return the admin user and whether it was created by this call."""
    existing = db.query(User).filter(User.email == email.lower()).first()
    if existing:
        return existing, False

    admin = User(email=email.lower(), password=hash_password(password), role="admin", name="Admin")
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin, True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--email", default=settings.admin_email)
    parser.add_argument("--password", default=settings.admin_password)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin, created = setup_admin(db, args.email, args.password)
    finally:
        db.close()

    if created:
        logger.info("Admin user created: %s", admin.email)
        logger.info("Please change the password after first login!")
    else:
        logger.info("Admin user already exists: %s", admin.email)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
