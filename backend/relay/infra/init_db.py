# relay/infra/init_db.py

import argparse
import sys

from sqlalchemy import inspect
from relay.infra.postgres import Base, engine, init_db, check_connection


def describe_tables():
    """Print every table with its columns"""
    inspector = inspect(engine)
    tables = inspector.get_table_names()
    print(f"\nTables: {tables}")

    for table in tables:
        columns = inspector.get_columns(table)
        print(f"\n{table}:")
        for col in columns:
            print(f"  - {col['name']}: {col['type']}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create the relay database tables")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="drop existing tables first (deletes every stored message)"
    )
    args = parser.parse_args(argv)

    if not check_connection():
        print("❌ Database unreachable", file=sys.stderr)
        return 1

    if args.reset:
        print("⚠️  Dropping all tables...")
        # init_db registers the models; drop needs them registered too
        from relay.models.record import Record  # noqa: F401
        from relay.models.participant import Participant  # noqa: F401
        Base.metadata.drop_all(bind=engine)
        print("✓ Tables dropped")

    print("📦 Creating tables...")
    init_db()
    print("✅ Database initialized successfully!")

    describe_tables()
    return 0


if __name__ == "__main__":
    sys.exit(main())
