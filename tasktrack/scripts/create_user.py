"""
Create a user (e.g. the first admin) without going through signup. Run from project root:
  python -m tasktrack.scripts.create_user EMAIL PASSWORD FIRST_NAME LAST_NAME [role]
Example:
  python -m tasktrack.scripts.create_user admin@example.com 'S3cure!pass' Ada Admin admin
"""
import argparse
import sys

from tasktrack.core.config import get_settings
from tasktrack.core.database import Database
from tasktrack.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password
from tasktrack.repositories.users import UserRepository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a TaskTrack user.")
    parser.add_argument("email", help="Email address (stored lowercased)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("first_name")
    parser.add_argument("last_name")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if not email or "@" not in email or len(email) > 255:
        print("Invalid email.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    database = Database(settings.DATABASE_URL)
    db = database.session()
    try:
        users = UserRepository(db)
        if users.get_by_email(email):
            print(f"User '{email}' already exists.", file=sys.stderr)
            return 1
        users.add(
            email=email,
            password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
            first_name=args.first_name,
            last_name=args.last_name,
            role=args.role,
        )
        db.commit()
        print(f"Created user '{email}' with role '{args.role}'.")
        return 0
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
