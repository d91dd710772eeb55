"""
Create an administrator account, or promote an existing one.

Usage:
    python scripts/create_admin.py <email> <password> [name]

Example:
    python scripts/create_admin.py admin@example.com secret "Site Admin"
"""
import sys
import os

# project root on the Python path
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from werkzeug.security import generate_password_hash

from app.db import SessionLocal
from app.domains.auth.repository.auth_repository import AuthRepository
from app.models.user import UserRole


def create_admin(email: str, password: str, name: str = "Administrator") -> bool:
    db = SessionLocal()
    try:
        repo = AuthRepository(db)
        user = repo.get_user_by_email(email)

        if user is not None:
            user.role = UserRole.ADMIN
            user.active = True
            user.password_hash = generate_password_hash(password)
            db.commit()
            print(f"[ok] {user.email} promoted to admin (user_id={user.user_id})")
            return True

        user = repo.create_user(name=name, email=email, password=password, role=UserRole.ADMIN)
        print(f"[ok] admin created: {user.email} (user_id={user.user_id})")
        return True

    except Exception as e:
        db.rollback()
        print(f"[error] {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("Usage: python scripts/create_admin.py <email> <password> [name]")
        sys.exit(1)

    name = sys.argv[3] if len(sys.argv) > 3 else "Administrator"
    sys.exit(0 if create_admin(sys.argv[1], sys.argv[2], name) else 1)
