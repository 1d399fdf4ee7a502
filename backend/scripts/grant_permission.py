"""CLI script to grant or revoke a permission flag for a user.

The API never lets users raise their own privileges, so ADMIN (or any
other flag) is granted out-of-band with this script.

Usage: python scripts/grant_permission.py NAME [--permission ADMIN] [--revoke]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `quiz_api` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from quiz_api.config import Settings
from quiz_api.database import Database
from quiz_api.permissions import parse_permission
from quiz_api import repositories


def main(name: str, permission: str = 'ADMIN', revoke: bool = False, settings: Settings = None) -> int:
    """Update `name`'s permissions and print the resulting map.

    Returns a process exit code: 0 on success, 1 for an unknown user or
    permission name.
    """
    try:
        perm = parse_permission(permission)
    except ValueError as e:
        print(e)
        return 1
    db = Database((settings or Settings()).DATABASE_URL)
    db.create_tables()
    try:
        with db.session() as session:
            repo = repositories.UserRepository(session)
            user = repo.get_by_name(name)
            if not user:
                print(f'User not found: {name}')
                return 1
            if revoke:
                user.revoke_permission(perm)
            else:
                user.grant_permission(perm)
            user = repo.save(user)
            action = 'Revoked' if revoke else 'Granted'
            print(f'{action} {perm.name} for {user.name}')
            for key, value in user.permission_map().items():
                print(f'  {key}: {value}')
    finally:
        db.dispose()
    return 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('name', help='User name')
    parser.add_argument('--permission', default='ADMIN', help='Permission flag (default: ADMIN)')
    parser.add_argument('--revoke', action='store_true', help='Revoke instead of grant')
    args = parser.parse_args()
    sys.exit(main(args.name, permission=args.permission, revoke=args.revoke))
