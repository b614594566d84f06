"""
"Someone crossed you" alerts.

Only published locations are scanned, and the result type cannot hold the
other user's identity. The candidate id is kept on the stored event for
dedupe and is never returned.
"""
import logging

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from .collaborators import get_user
from .proximity import find_nearby_users, PUBLISHED
from ..config import (
    CROSS_RADIUS_METERS,
    CROSS_COOLDOWN,
    CROSS_DEDUPE_WINDOW,
    CROSS_EVENT_EXPIRY,
    CLEANUP_BATCH_SIZE,
)
from ..db.mongo import ALERT_COOLDOWNS, CROSSED_EVENTS, resolve_db, as_utc, utc_now
from ..schemas.schemas import CrossedAlertResult

logger = logging.getLogger(__name__)


def _recently_alerted_about(db, user_id, other_user_id, now):
    event = db[CROSSED_EVENTS].find_one(
        {
            "user_id": user_id,
            "other_user_id": other_user_id,
            "created_at": {"$gt": now - CROSS_DEDUPE_WINDOW},
        },
        {"_id": 1},
    )
    return event is not None


def _claim_cooldown(db, user_id, now):
    """
    Take the subject's alert slot in one atomic write.

    The slot is free when the last alert is at least 6h old or there has never
    been one. If another request holds it, the filter misses and the upsert
    collides with the unique user_id index.
    """
    try:
        db[ALERT_COOLDOWNS].find_one_and_update(
            {
                "user_id": user_id,
                "$or": [
                    {"last_alert_at": {"$lte": now - CROSS_COOLDOWN}},
                    {"last_alert_at": None},
                ],
            },
            {"$set": {"last_alert_at": now}},
            upsert=True,
        )
        return True
    except DuplicateKeyError:
        return False


def detect_crossed_users(user_id, latitude, longitude, db=None, now=None):
    db = resolve_db(db)
    now = now or utc_now()

    current_user = get_user(db, user_id)
    if not current_user:
        return CrossedAlertResult(triggered=False, reason="user_not_found")

    last_event = db[CROSSED_EVENTS].find_one({"user_id": user_id}, sort=[("created_at", DESCENDING)])
    if last_event and now - as_utc(last_event["created_at"]) < CROSS_COOLDOWN:
        return CrossedAlertResult(triggered=False, reason="cooldown")

    nearby = find_nearby_users(
        db, current_user, latitude, longitude, now,
        source=PUBLISHED, radius_m=CROSS_RADIUS_METERS,
    )
    candidates = [
        match.user["user_id"] for match in nearby
        if not _recently_alerted_about(db, user_id, match.user["user_id"], now)
    ]
    if not candidates:
        return CrossedAlertResult(triggered=False, reason="none")

    if not _claim_cooldown(db, user_id, now):
        logger.debug(f"Crossed alert for user {user_id} lost the cooldown claim")
        return CrossedAlertResult(triggered=False, reason="cooldown")

    # Any qualifying candidate will do; the first in scan order keeps it deterministic.
    db[CROSSED_EVENTS].insert_one({
        "user_id": user_id,
        "other_user_id": candidates[0],
        "created_at": now,
        "expires_at": now + CROSS_EVENT_EXPIRY,
    })
    logger.info(f"[✓] Crossed alert triggered for user {user_id} ({len(candidates)} candidates)")
    return CrossedAlertResult(triggered=True)


def cleanup_expired_crossed_events(batch_size=CLEANUP_BATCH_SIZE, db=None, now=None):
    db = resolve_db(db)
    now = now or utc_now()
    expired = db[CROSSED_EVENTS].find({"expires_at": {"$lt": now}}, {"_id": 1}).limit(batch_size)
    ids = [e["_id"] for e in expired]
    if not ids:
        return {"deleted": 0}
    result = db[CROSSED_EVENTS].delete_many({"_id": {"$in": ids}})
    logger.info(f"[✓] Deleted {result.deleted_count} expired crossed events")
    return {"deleted": result.deleted_count}
