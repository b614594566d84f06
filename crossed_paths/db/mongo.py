import logging
from datetime import datetime, timezone

from pymongo import ASCENDING, DESCENDING, MongoClient

from ..config import MONGO_URI, DB_NAME

logger = logging.getLogger(__name__)

USERS = "users"
BLOCKS = "blocks"
PHOTOS = "photos"
NOTIFICATIONS = "notifications"
CROSSED_PATHS = "crossed_paths"
CROSS_PATH_HISTORY = "cross_path_history"
CROSSED_EVENTS = "crossed_events"
ALERT_COOLDOWNS = "alert_cooldowns"

_client = None


def get_client():
    global _client
    if _client is None:
        _client = MongoClient(MONGO_URI, tz_aware=True)
    return _client


def get_db():
    return get_client()[DB_NAME]


def resolve_db(db=None):
    """Return the given database, or the configured default one."""
    return db if db is not None else get_db()


def as_utc(value):
    """Mongo may hand datetimes back naive; they are always stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utc_now():
    # Mongo keeps millisecond precision only
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def setup_collections(db=None):
    """Create the indexes the crossed paths engine relies on. Safe to run repeatedly."""
    db = resolve_db(db)
    try:
        db[USERS].create_index("user_id", unique=True)
        db[BLOCKS].create_index([("blocker_id", ASCENDING), ("blocked_user_id", ASCENDING)])
        db[BLOCKS].create_index("blocked_user_id")
        db[PHOTOS].create_index([("user_id", ASCENDING), ("is_primary", ASCENDING)])
        db[NOTIFICATIONS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

        # one record per unordered pair
        db[CROSSED_PATHS].create_index(
            [("user1_id", ASCENDING), ("user2_id", ASCENDING)], unique=True
        )
        db[CROSSED_PATHS].create_index("user2_id")

        db[CROSS_PATH_HISTORY].create_index(
            [("user1_id", ASCENDING), ("user2_id", ASCENDING), ("created_at", DESCENDING)]
        )
        db[CROSS_PATH_HISTORY].create_index("user2_id")
        db[CROSS_PATH_HISTORY].create_index("expires_at")

        db[CROSSED_EVENTS].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        db[CROSSED_EVENTS].create_index([("user_id", ASCENDING), ("other_user_id", ASCENDING)])
        db[CROSSED_EVENTS].create_index("expires_at")

        # one cooldown claim per alert subject
        db[ALERT_COOLDOWNS].create_index("user_id", unique=True)
        logger.info(f"[✓] Initialized crossed paths collections in {db.name}")
        return db
    except Exception as e:
        logger.error(f"[✗] Error setting up crossed paths collections in {db.name}: {e}")
        raise
