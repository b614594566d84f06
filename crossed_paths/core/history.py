import logging

from pymongo import DESCENDING

from .collaborators import get_user, get_primary_photo_url
from .crossings import pair_key
from ..config import PAIR_COOLDOWN, HISTORY_EXPIRY, MAX_HISTORY_ENTRIES, CLEANUP_BATCH_SIZE
from ..db.mongo import CROSS_PATH_HISTORY, resolve_db, as_utc, utc_now

logger = logging.getLogger(__name__)


def area_name_for(user):
    """Coarse, human readable area. Never coordinates."""
    city = user.get("city")
    return f"Near {city}" if city else "Nearby area"


def _entries_for_user(db, user_id):
    return list(db[CROSS_PATH_HISTORY].find({"$or": [{"user1_id": user_id}, {"user2_id": user_id}]}))


def trim_history_for_user(db, user_id):
    """Keep only the MAX_HISTORY_ENTRIES newest entries the user appears in."""
    entries = sorted(_entries_for_user(db, user_id), key=lambda e: as_utc(e["created_at"]), reverse=True)
    overflow = [e["_id"] for e in entries[MAX_HISTORY_ENTRIES:]]
    if not overflow:
        return 0
    result = db[CROSS_PATH_HISTORY].delete_many({"_id": {"$in": overflow}})
    logger.debug(f"Trimmed {result.deleted_count} history entries for user {user_id}")
    return result.deleted_count


def record_history_entry(db, current_user, other_user, now):
    """
    Add an encounter to both users' history unless the pair already has one
    from the last 24h. Returns the new entry or None.
    """
    user1_id, user2_id = pair_key(current_user["user_id"], other_user["user_id"])
    latest = db[CROSS_PATH_HISTORY].find_one(
        {"user1_id": user1_id, "user2_id": user2_id},
        sort=[("created_at", DESCENDING)],
    )
    if latest and now - as_utc(latest["created_at"]) < PAIR_COOLDOWN:
        return None

    entry = {
        "user1_id": user1_id,
        "user2_id": user2_id,
        "area_name": area_name_for(other_user),
        "created_at": now,
        "expires_at": now + HISTORY_EXPIRY,
    }
    db[CROSS_PATH_HISTORY].insert_one(entry)

    trim_history_for_user(db, user1_id)
    trim_history_for_user(db, user2_id)
    return entry


def get_cross_path_history(user_id, db=None, now=None):
    db = resolve_db(db)
    now = now or utc_now()

    entries = [e for e in _entries_for_user(db, user_id) if as_utc(e["expires_at"]) > now]
    entries.sort(key=lambda e: as_utc(e["created_at"]), reverse=True)

    results = []
    for entry in entries[:MAX_HISTORY_ENTRIES]:
        other_id = entry["user2_id"] if entry["user1_id"] == user_id else entry["user1_id"]
        other = get_user(db, other_id)
        if not other or not other.get("is_active"):
            continue
        name = other.get("name") or ""
        results.append({
            "id": str(entry["_id"]),
            "otherUserId": other_id,
            "areaName": entry["area_name"],
            "createdAt": as_utc(entry["created_at"]),
            "photoUrl": get_primary_photo_url(db, other_id),
            "initial": name[:1],
        })
    return results


def cleanup_expired_history(batch_size=CLEANUP_BATCH_SIZE, db=None, now=None):
    """Delete up to batch_size expired history entries. The next run picks up any remainder."""
    db = resolve_db(db)
    now = now or utc_now()
    expired = db[CROSS_PATH_HISTORY].find({"expires_at": {"$lt": now}}, {"_id": 1}).limit(batch_size)
    ids = [e["_id"] for e in expired]
    if not ids:
        return {"deleted": 0}
    result = db[CROSS_PATH_HISTORY].delete_many({"_id": {"$in": ids}})
    logger.info(f"[✓] Deleted {result.deleted_count} expired cross path history entries")
    return {"deleted": result.deleted_count}
