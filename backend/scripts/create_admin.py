"""CLI script to create an administrator account or promote an existing user.
Usage: python scripts/create_admin.py EMAIL [--password PASSWORD]
"""
import sys
import argparse
import getpass
import pathlib
from typing import Optional
# Ensure `backend/` is on sys.path so `webquiz` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from webquiz.database import engine, create_db_and_tables
from webquiz import schemas, services


def main(email: str, password: Optional[str] = None) -> int:
    """Create `email` as an administrator, or grant ADMIN to that account.

    The password is only used when the account does not exist yet and is
    prompted for when not given on the command line.
    """
    if not schemas.EMAIL_PATTERN.fullmatch(email):
        print(f'Not a valid email address: {email}')
        return 1
    create_db_and_tables()
    with Session(engine) as session:
        svc = services.UserService(session)
        existing = svc.user_repo.get_by_username(email)
        if existing is None:
            if password is None:
                password = getpass.getpass('Password: ')
            if len(password) < 5:
                print('Password must be at least 5 characters')
                return 1
        user = svc.ensure_admin(email, password or '')
        print(f'Administrator ready: {user.email} (id {user.id})')
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('email', help='Email address of the administrator')
    parser.add_argument('--password', help='Password for a newly created account')
    args = parser.parse_args()
    sys.exit(main(args.email, password=args.password))
