# manage_db.py
"""
Database maintenance script

    python manage_db.py init [--reset]
    python manage_db.py promote-admin EMAIL
"""
import sys

from quizlink import create_app
from quizlink.extensions import db
from quizlink.models import Profile


USAGE = "Usage: python manage_db.py init [--reset] | promote-admin EMAIL"


def init_database(reset=False):
    """Create all tables, optionally dropping existing ones first"""
    app = create_app()

    with app.app_context():
        print(f"\n{'='*50}")
        print("DATABASE INIT")
        print(f"{'='*50}")

        if reset:
            db.drop_all()
            print("  Dropped existing tables")
        db.create_all()

        for table in db.metadata.sorted_tables:
            print(f"  - {table.name}")
        print("Tables ready.")


def promote_admin(email):
    """Give an existing profile the admin role"""
    app = create_app()

    with app.app_context():
        user = Profile.query.filter_by(email=email.strip().lower()).first()
        if not user:
            print(f"No registered user with email {email}")
            return 1
        if user.is_admin:
            print(f"{user.email} is already an admin")
            return 0

        user.role = Profile.ROLE_ADMIN
        db.session.commit()
        app.logger.info("Profile %s promoted to admin from the command line", user.id)
        print(f"{user.full_name} <{user.email}> is now an admin")
        return 0


def main(argv):
    if not argv:
        print(USAGE)
        return 2

    command, args = argv[0], argv[1:]
    if command == 'init':
        init_database(reset='--reset' in args)
        return 0
    if command == 'promote-admin' and len(args) == 1:
        return promote_admin(args[0])

    print(USAGE)
    return 2


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
