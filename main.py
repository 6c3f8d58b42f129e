"""Main entry point for running one profile population or validation pass."""
import argparse
import asyncio

from vcprofile.config import settings
from vcprofile.db import AsyncSessionMaker, engine
from vcprofile.logging_config import setup_logging
from vcprofile.pipelines.batch import BatchReport, populate_profiles, validate_profiles
from vcprofile.store import SqlAlchemyProfileStore


async def run(args: argparse.Namespace) -> BatchReport:
    try:
        async with AsyncSessionMaker() as session:
            store = SqlAlchemyProfileStore(session)

            if args.command == "populate":
                user_ids = args.user or await store.list_user_ids()
                return await populate_profiles(store, user_ids)

            return await validate_profiles(store, limit=args.limit)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Build or validate user profiles from stored VCs.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    populate = subparsers.add_parser("populate", help="Build profiles from user documents")
    populate.add_argument("--user", action="append", help="User id to process (repeatable, default: all users)")

    validate = subparsers.add_parser("validate", help="Cross-check stored profiles against verified documents")
    validate.add_argument("--limit", type=int, default=settings.batch.size, help="Users per pass")

    args = parser.parse_args()
    setup_logging()

    print(f"Starting {settings.app_name} v{settings.version} ({args.command})")
    print(f"Database: {settings.db.url.split('@')[-1] if '@' in settings.db.url else 'SQLite'}")
    print(f"Engine tables: {settings.engine.config_dir or 'bundled defaults'}")
    print("-" * 50)

    report = asyncio.run(run(args))

    print(f"Processed: {len(report.processed)}  Failed: {len(report.failed)}")
    for user_id, error in report.failed.items():
        print(f"  {user_id}: {error}")
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
