"""Allocation database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
    python src/manage.py seed       # Seed the nationwide zone
"""

import argparse
import sys


def _domain():
    from allocation.domain import allocation

    allocation.init()
    return allocation


def setup_database():
    from allocation.utils.db import setup_db

    print("Initializing allocation domain...")
    domain = _domain()
    print("Creating allocation database schema...")
    providers = setup_db(domain)
    if providers:
        print(f"  schema ready on: {', '.join(providers)}")
    else:
        print("  no SQL provider configured, nothing to create.")
    print("Done.")


def drop_database():
    from allocation.utils.db import drop_db

    print("Initializing allocation domain...")
    domain = _domain()
    print("Dropping allocation database schema...")
    providers = drop_db(domain)
    if providers:
        print(f"  schema dropped on: {', '.join(providers)}")
    else:
        print("  no SQL provider configured, nothing to drop.")
    print("Done.")


def seed():
    from allocation.geography.management import SeedNationwideZone

    domain = _domain()
    with domain.domain_context():
        zone_id = domain.process(SeedNationwideZone(), asynchronous=False)
    print(f"Nationwide zone: {zone_id}")


def main():
    parser = argparse.ArgumentParser(description="Allocation database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed", help="Seed the nationwide zone (idempotent)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed":
        seed()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
