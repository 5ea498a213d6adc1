import sys
import os
import argparse
import logging
from dotenv import load_dotenv

load_dotenv()

# Add the parent directory to sys.path to allow imports from backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base, build_engine, build_session_factory
from crud.chart_of_accounts import initialize_default_chart
from exceptions import LedgerException
import models  # noqa: F401

# Setup logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("seed_accounts")


def seed(user_id=None, create_tables=False, database_url=None):
    """Seed the default chart of accounts; no user id seeds the shared chart."""
    engine = build_engine(database_url)
    if create_tables:
        Base.metadata.create_all(bind=engine)

    SessionLocal = build_session_factory(engine)
    db = SessionLocal()
    try:
        created = initialize_default_chart(db, user_id=user_id)
        logger.info(f"Seeding finished for {'owner ' + user_id if user_id else 'the shared chart'}: {created} rows created")
        return created
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the default chart of accounts")
    parser.add_argument("--user-id", default=None, help="Owner to seed for (default: shared chart)")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    args = parser.parse_args()
    try:
        seed(user_id=args.user_id, create_tables=args.create_tables)
    except LedgerException as e:
        logger.error(f"Seeding failed: {e.message}")
        sys.exit(1)
