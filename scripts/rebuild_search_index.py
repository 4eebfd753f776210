"""Script to rebuild the item search index from scratch."""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from klutterbox.config import settings
from klutterbox.database import SessionLocal, transaction
from klutterbox.logging_config import configure_logging
from klutterbox.main import init_db
from klutterbox.services.search_index import rebuild_index


def rebuild():
    """Create tables if needed, then reindex every item."""
    configure_logging(settings.LOG_LEVEL)
    db = SessionLocal()
    try:
        init_db(db)
        with transaction(db, failure="Failed to rebuild search index"):
            count = rebuild_index(db)
        print(f"Reindexed {count} item(s)")
    finally:
        db.close()


if __name__ == "__main__":
    rebuild()
