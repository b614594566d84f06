import logging

from .collaborators import get_user
from .crossings import record_crossing
from .history import record_history_entry
from .proximity import find_nearby_users, is_verified, RAW
from ..config import LOCATION_UPDATE_INTERVAL, PUBLISH_WINDOW
from ..db.mongo import USERS, resolve_db, as_utc, utc_now

logger = logging.getLogger(__name__)


def publish_location(user_id, latitude, longitude, db=None, now=None):
    """
    Update the location other users are allowed to see, at most once every 6 hours.
    Live GPS is never shared; this projection is.
    """
    db = resolve_db(db)
    now = now or utc_now()

    user = get_user(db, user_id)
    if not user:
        return {"success": False, "published": False, "reason": "user_not_found"}

    published_at = as_utc(user.get("published_at"))
    if published_at and now - published_at < PUBLISH_WINDOW:
        return {
            "success": True,
            "published": False,
            "reason": "within_window",
            "nextPublishAt": published_at + PUBLISH_WINDOW,
        }

    db[USERS].update_one(
        {"user_id": user_id},
        {"$set": {"published_lat": latitude, "published_lng": longitude, "published_at": now}},
    )
    logger.info(f"[✓] Published location for user {user_id}")
    return {"success": True, "published": True, "publishedAt": now}


def record_location(user_id, latitude, longitude, db=None, now=None):
    """
    Store a live location ping and, for verified users, record crossings with
    everyone eligible nearby.

    Pings closer than 30 minutes to the previous accepted one are skipped
    without writing anything.
    """
    db = resolve_db(db)
    now = now or utc_now()

    current_user = get_user(db, user_id)
    if not current_user:
        return {"success": False, "nearbyCount": 0, "reason": "user_not_found"}

    last_update = as_utc(current_user.get("last_location_updated_at"))
    if last_update and now - last_update < LOCATION_UPDATE_INTERVAL:
        return {"success": True, "nearbyCount": 0, "skipped": True}

    db[USERS].update_one(
        {"user_id": user_id},
        {"$set": {
            "latitude": latitude,
            "longitude": longitude,
            "last_active": now,
            "last_location_updated_at": now,
        }},
    )

    if not is_verified(current_user):
        logger.debug(f"User {user_id} is not verified, location stored without matching")
        return {"success": True, "nearbyCount": 0, "skipped": True, "reason": "unverified"}

    nearby = find_nearby_users(db, current_user, latitude, longitude, now, source=RAW)
    crossings = 0
    for match in nearby:
        if record_crossing(db, user_id, match.user["user_id"], now) is not None:
            crossings += 1
        record_history_entry(db, current_user, match.user, now)

    logger.info(f"[✓] Recorded location for user {user_id}: nearby={len(nearby)}, counted crossings={crossings}")
    return {"success": True, "nearbyCount": len(nearby)}
