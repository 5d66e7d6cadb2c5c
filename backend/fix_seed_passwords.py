"""Reset the seed accounts' password hashes to the default password.

Run: python -m backend.fix_seed_passwords
"""
from backend.educore.config import get_settings
from backend.educore.database import build_engine, build_session_factory
from backend.educore.models import User
from backend.educore.security import hash_password
from backend.educore.seed import DEFAULT_PASSWORD, SEED_EMAILS


def fix_seed_passwords() -> int:
    settings = get_settings()
    engine = build_engine(settings.database_url)
    db = build_session_factory(engine)()
    try:
        password_hash = hash_password(DEFAULT_PASSWORD, rounds=settings.bcrypt_rounds)
        print(f"Generated hash: {password_hash}")

        users = db.query(User).filter(User.email.in_(SEED_EMAILS)).all()
        for user in users:
            user.password_hash = password_hash
        db.commit()

        print("\nUpdated users:")
        for user in users:
            print(f"  - {user.email} ({user.role.value})")
        print(f"\nAll passwords set to: {DEFAULT_PASSWORD}")
        return len(users)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    fix_seed_passwords()
