# config.py
from datetime import timedelta
import os

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("CROSSED_PATHS_DB", "crossed_paths_db")

# Proximity
PROXIMITY_METERS = 1000  # fixed 1km radius, inclusive
EARTH_RADIUS_METERS = 6371000

# Location gates
LOCATION_UPDATE_INTERVAL = timedelta(minutes=30)
PUBLISH_WINDOW = timedelta(hours=6)

# Freshness tiers (map markers and candidate staleness)
SOLID_WINDOW = timedelta(days=3)
FADED_WINDOW = timedelta(days=6)  # older than this -> hidden / stale

# Crossed paths counter
PAIR_COOLDOWN = timedelta(hours=24)
MIN_CROSSINGS_FOR_UNLOCK = 10
UNLOCK_DURATION = timedelta(hours=48)
DEFAULT_CROSSED_PATHS_LIMIT = 50

# Encounter history
HISTORY_EXPIRY = timedelta(days=14)
MAX_HISTORY_ENTRIES = 15

# "Someone crossed you" alerts
CROSS_RADIUS_METERS = 1000
CROSS_COOLDOWN = timedelta(hours=6)
CROSS_DEDUPE_WINDOW = timedelta(hours=24)
CROSS_EVENT_EXPIRY = timedelta(days=7)

# Scheduler
CLEANUP_INTERVAL_MINUTES = int(os.getenv("CLEANUP_INTERVAL_MINUTES", "60"))
CLEANUP_BATCH_SIZE = 100

# Logging (optional)
DEBUG_MODE = os.getenv("DEBUG_MODE", "1") == "1"
