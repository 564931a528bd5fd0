# create_tables.py
import sys

from taskhub.database import Base, SessionLocal, engine
from taskhub.models import User, UserRole
from taskhub.utils.auth import create_access_token

ADMIN_EMAIL = "admin@example.com"


def create_tables(reset: bool = False):
    """Create all tables, dropping existing ones first when reset is set"""
    try:
        if reset:
            Base.metadata.drop_all(bind=engine)
            print("🗑️  Existing tables dropped")

        Base.metadata.create_all(bind=engine)
        print("✅ All tables created successfully!")

        create_default_admin()

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise


def create_default_admin():
    """Create a default admin user and print a bearer token for it"""
    with SessionLocal() as db:
        admin = db.query(User).filter(User.email == ADMIN_EMAIL).first()
        if admin is None:
            admin = User(
                name="System Administrator",
                email=ADMIN_EMAIL,
                role=UserRole.ADMIN.value,
                company_id=None,
                is_active=True,
            )
            db.add(admin)
            db.commit()
            print("✅ Default admin user created!")
            print(f"   Email: {ADMIN_EMAIL}")
        else:
            print("ℹ️  Admin user already exists")

    print(f"   Token: {create_access_token({'sub': ADMIN_EMAIL})}")


if __name__ == "__main__":
    create_tables(reset="--reset" in sys.argv)
