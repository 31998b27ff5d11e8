"""Create all tables. Run on app startup.

SECURITY: Auto-generates a random default admin password (not hardcoded).
The admin must change it after first login.
"""
import secrets

from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.models import Franchise, User, Customer, Product, Inventory, Order, OrderItem  # noqa: F401 - register models
from app.core.security import get_password_hash


def init_db(bind=None) -> None:
    bind = bind or engine
    Base.metadata.create_all(bind=bind)

    # Create default admin user if no users exist
    db = SessionLocal(bind=bind)
    try:
        if db.query(User).count() == 0:
            default_password = secrets.token_urlsafe(16)
            db.add(User(
                first_name="Admin",
                last_name="User",
                username="admin",
                email="admin@pharmacy.local",
                role="admin",
                hashed_password=get_password_hash(default_password),
            ))
            db.commit()

            # Print to console (only on initial setup)
            print("\n" + "=" * 70)
            print("DEFAULT ADMIN USER CREATED")
            print("=" * 70)
            print("Username: admin")
            print(f"Password: {default_password}")
            print("\nSECURITY: Change this password immediately after first login!")
            print("=" * 70 + "\n")
    finally:
        db.close()
