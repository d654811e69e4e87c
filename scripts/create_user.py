import argparse
import getpass
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from affiliate_hub.config import Settings
from affiliate_hub.database import Database
from affiliate_hub.errors import APIError
from affiliate_hub.models import DEFAULT_ROLE
from affiliate_hub.passwords import PasswordHasher

PASSWORD_MIN_LENGTH = 6


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an Affiliate Hub user")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument(
        "--role",
        default=DEFAULT_ROLE,
        help=f"Role stored on the account and embedded in its tokens (default: {DEFAULT_ROLE})",
    )
    parser.add_argument(
        "--mongo-uri",
        dest="mongo_uri",
        default=None,
        help="MongoDB connection string (defaults to MONGO_URI)",
    )
    return parser.parse_args(argv)


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < PASSWORD_MIN_LENGTH:
            print(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main(argv=None) -> int:
    args = parse_args(argv)
    password = prompt_for_password()

    settings = Settings.from_env()
    database = Database.connect(args.mongo_uri or settings.mongo_uri, settings.mongo_db_name)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    try:
        database.initialize()
        user = database.create_user(
            args.name.strip(),
            args.email,
            hasher.hash_sync(password),
            role=args.role.strip() or DEFAULT_ROLE,
        )
    except APIError as exc:  # duplicates, connection failures
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1
    finally:
        database.close()

    print(f"Created user {user.id}: {user.name} <{user.email}> with role '{user.role}'")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
