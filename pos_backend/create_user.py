"""Create a till operator, or reset the password of an existing one.

Usage:
    python -m pos_backend.create_user
"""

from __future__ import annotations

import getpass

from sqlalchemy import func

from pos_backend.app.core.database import SessionLocal
from pos_backend.app.core.security import get_password_hash

# Import all models so SQLAlchemy resolves relationships
import pos_backend.app.models.registry  # noqa: F401

from pos_backend.app.models.user import User


def main() -> None:
    username = input("Username [cashier]: ").strip() or "cashier"
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(
            func.lower(User.username) == username.lower()
        ).first()
        if existing:
            existing.hashed_password = get_password_hash(password)
            existing.is_active = True
            db.commit()
            print("Operator already exists, password reset.")
            print(f"  ID:       {existing.id}")
            print(f"  Username: {existing.username}")
            return

        user = User(username=username, hashed_password=get_password_hash(password))
        db.add(user)
        db.commit()
        db.refresh(user)

        print("Operator created.")
        print(f"  ID:       {user.id}")
        print(f"  Username: {username}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
