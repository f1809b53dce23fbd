"""
Initialize database and create a demo owner.

Run this script once to set up the database:
    python init_db.py [email]

Prints a bearer token for the owner so the management API can be tried
without the external auth service.
"""

import sys

from shortlinks.database import engine, Base, SessionLocal
from shortlinks.models import User
from shortlinks.core.security import create_access_token


def init_database():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")


def create_owner(email: str = "owner@example.com"):
    """Create the demo owner if missing and print a token for it"""
    db = SessionLocal()

    try:
        user = db.query(User).filter(User.email == email).first()

        if user:
            print(f"User {email} already exists.")
        else:
            print(f"\nCreating user {email}...")
            user = User(email=email, name="Demo owner")
            db.add(user)
            db.commit()
            db.refresh(user)

        token = create_access_token({"sub": str(user.id)})

        print("\n" + "="*50)
        print(f"User id: {user.id}")
        print(f"Email: {user.email}")
        print(f"Bearer token: {token}")
        print("="*50)

    except Exception as e:
        print(f"Error creating user: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print("="*50)
    print("Short Links - Database Initialization")
    print("="*50)

    init_database()
    create_owner(*sys.argv[1:2])

    print("\nDatabase initialization complete!")
    print("\nYou can now start the server with:")
    print("    uvicorn shortlinks.main:app --reload")
