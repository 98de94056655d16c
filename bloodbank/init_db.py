"""
Database initialization script.
Creates all tables and seeds the initial admin user.
"""
import os
import sys

from dotenv import load_dotenv

from bloodbank.database import Base, engine, SessionLocal, User, Role
from bloodbank.services.auth_service import hash_password
from bloodbank.services.credential_store import CredentialStore

load_dotenv()

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@bloodbank.org")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin12345")


def init_db(drop: bool = False):
    """Create tables (optionally dropping existing ones first) and seed the admin."""
    if drop:
        print("Dropping existing database tables...")
        Base.metadata.drop_all(bind=engine)
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")

    try:
        seed_admin()
    except Exception as e:
        print(f"\n✗ Error seeding admin user: {e}")
        sys.exit(1)


def seed_admin(db=None):
    """Create the default admin user if no user holds that username or email."""
    own_session = db is None
    db = db or SessionLocal()
    store = CredentialStore(db)

    try:
        if store.exists_by_username(ADMIN_USERNAME) or store.exists_by_email(ADMIN_EMAIL):
            print("\n✓ Admin user already exists!")
            return None

        admin = store.save(User(
            username=ADMIN_USERNAME,
            email=ADMIN_EMAIL,
            password=hash_password(ADMIN_PASSWORD),
            first_name="Admin",
            last_name="User",
            role=Role.ADMIN,
            is_active=True
        ))

        print("\n✓ Admin user created successfully!")
        print(f"   Username: {admin.username}")
        print(f"   Email: {admin.email}")
        return admin
    finally:
        if own_session:
            db.close()


def main():
    init_db(drop="--drop" in sys.argv[1:])


if __name__ == "__main__":
    main()
