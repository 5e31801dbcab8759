import sys
import os
import argparse

# Add the project root to the python path so we can import cockpit modules
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cockpit.core.database import Base, SessionLocal, engine
from cockpit.models.profile import Profile, UserRole
from cockpit.services.roles import USER_ROLES
from cockpit.services.security import hash_password

def create_manual_user(email, password, role=None, first_name=None, last_name=None, dashboard_id=None):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        email = email.strip().lower()
        profile = db.query(Profile).filter(Profile.email == email).first()
        if profile:
            print(f"Profile '{email}' already exists.")
        else:
            profile = Profile(
                email=email,
                password=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                metabase_dashboard_id=dashboard_id,
            )
            db.add(profile)
            db.flush()
            print(f"Created profile '{email}' ({profile.id}).")

        if role and not db.query(UserRole).filter(UserRole.user_id == profile.id, UserRole.role == role).first():
            db.add(UserRole(user_id=profile.id, role=role))
            print(f"Granted role '{role}'.")
        db.commit()
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a cockpit profile, optionally with a role.")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--role", choices=USER_ROLES)
    parser.add_argument("--first-name")
    parser.add_argument("--last-name")
    parser.add_argument("--dashboard-id", type=int)
    args = parser.parse_args()

    create_manual_user(args.email, args.password, args.role, args.first_name, args.last_name, args.dashboard_id)
