"""
Create a user (e.g. the first superadmin). Run from project root:
  python -m app.scripts.create_user [EMAIL PASSWORD FULL_NAME [ROLE]]
Without positional arguments the SUPERADMIN_EMAIL, SUPERADMIN_PASSWORD and
SUPERADMIN_FULL_NAME settings are used. Seeded accounts are created verified.
Example:
  python -m app.scripts.create_user admin@example.com your-secure-password "Site Admin"
"""
import argparse
import sys

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.exceptions import EmailTakenError
from app.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from app.models import Role
from app.repositories import UserRepository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Gatehouse user (seed accounts).")
    parser.add_argument("email", nargs="?", default=settings.SUPERADMIN_EMAIL)
    parser.add_argument(
        "password",
        nargs="?",
        default=settings.SUPERADMIN_PASSWORD.get_secret_value() if settings.SUPERADMIN_PASSWORD else None,
    )
    parser.add_argument("full_name", nargs="?", default=settings.SUPERADMIN_FULL_NAME or "Super Admin")
    parser.add_argument(
        "role",
        nargs="?",
        default=Role.SUPERADMIN.value,
        choices=[r.value for r in Role],
    )
    args = parser.parse_args(argv)

    email = (args.email or "").strip()
    if not email or "@" not in email:
        print("An email is required (argument or SUPERADMIN_EMAIL).", file=sys.stderr)
        return 1
    password = args.password or ""
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        users = UserRepository(db)
        if users.get_active_by_email(email) is not None:
            print(f"User '{email}' already exists.")
            return 0
        try:
            user = users.create(
                email=email,
                password_hash=hash_password(password, rounds=settings.BCRYPT_ROUNDS),
                full_name=args.full_name,
                role=Role(args.role),
                email_verified=True,
            )
        except EmailTakenError:
            print(f"User '{email}' already exists.")
            return 0
        print(f"Created user '{user.email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
