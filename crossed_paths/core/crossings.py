import logging

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from .collaborators import get_user, get_primary_photo_url, notify_crossed_paths_unlock
from .geo import calculate_age
from ..config import (
    PAIR_COOLDOWN,
    MIN_CROSSINGS_FOR_UNLOCK,
    UNLOCK_DURATION,
    DEFAULT_CROSSED_PATHS_LIMIT,
)
from ..db.mongo import CROSSED_PATHS, resolve_db, as_utc, utc_now

logger = logging.getLogger(__name__)


def pair_key(user_a, user_b):
    """Canonical (lower, higher) ordering of an unordered pair of user ids."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


def record_crossing(db, user_a, user_b, now):
    """
    Count one encounter between two users.

    The increment only applies when the pair's last crossing is at least 24h
    old, and is done in a single atomic update so concurrent encounters can't
    both count. Reaching the threshold arms a one-time 48h unlock.

    Returns the updated pair document, or None when the pair is cooling down.
    """
    user1_id, user2_id = pair_key(user_a, user_b)
    collection = db[CROSSED_PATHS]

    updated = collection.find_one_and_update(
        {
            "user1_id": user1_id,
            "user2_id": user2_id,
            "last_crossed_at": {"$lte": now - PAIR_COOLDOWN},
        },
        {"$inc": {"count": 1}, "$set": {"last_crossed_at": now}},
        return_document=ReturnDocument.AFTER,
    )

    if updated is None:
        if collection.find_one({"user1_id": user1_id, "user2_id": user2_id}, {"_id": 1}):
            logger.debug(f"Pair {user1_id}/{user2_id} crossed within cooldown, not counted")
            return None
        try:
            doc = {"user1_id": user1_id, "user2_id": user2_id, "count": 1, "last_crossed_at": now}
            collection.insert_one(doc)
            logger.info(f"[✓] First crossing recorded for pair {user1_id}/{user2_id}")
            return doc
        except DuplicateKeyError:
            # another request created the pair just now
            return None

    if updated["count"] >= MIN_CROSSINGS_FOR_UNLOCK and updated.get("unlock_expires_at") is None:
        unlock_expires_at = now + UNLOCK_DURATION
        armed = collection.update_one(
            {"_id": updated["_id"], "unlock_expires_at": None},
            {"$set": {"unlock_expires_at": unlock_expires_at}},
        )
        if armed.modified_count == 1:
            updated["unlock_expires_at"] = unlock_expires_at
            logger.info(f"[✓] Unlocked messaging for pair {user1_id}/{user2_id} after {updated['count']} crossings")
            notify_crossed_paths_unlock(db, user1_id, user2_id, updated["count"], now)

    return updated


def _unlock_state(pair, now):
    unlock_expires_at = as_utc(pair.get("unlock_expires_at"))
    is_unlocked = unlock_expires_at is not None and unlock_expires_at > now
    remaining = int((unlock_expires_at - now).total_seconds()) if is_unlocked else 0
    return is_unlocked, unlock_expires_at, remaining


def progress_to_unlock(count):
    return min(count / MIN_CROSSINGS_FOR_UNLOCK, 1)


def get_crossed_paths(user_id, limit=DEFAULT_CROSSED_PATHS_LIMIT, db=None, now=None):
    """Pairs the user is part of, most crossed first, with the other user's public summary."""
    db = resolve_db(db)
    now = now or utc_now()
    collection = db[CROSSED_PATHS]

    order = [("count", DESCENDING), ("last_crossed_at", DESCENDING)]
    pairs = list(collection.find({"user1_id": user_id}).sort(order).limit(limit))
    pairs += list(collection.find({"user2_id": user_id}).sort(order).limit(limit))
    pairs.sort(key=lambda p: (p["count"], as_utc(p["last_crossed_at"])), reverse=True)

    results = []
    for pair in pairs[:limit]:
        other_id = pair["user2_id"] if pair["user1_id"] == user_id else pair["user1_id"]
        other = get_user(db, other_id)
        if not other or not other.get("is_active"):
            continue

        is_unlocked, unlock_expires_at, remaining = _unlock_state(pair, now)
        results.append({
            "id": str(pair["_id"]),
            "count": pair["count"],
            "lastCrossedAt": as_utc(pair["last_crossed_at"]),
            "isUnlocked": is_unlocked,
            "unlockExpiresAt": unlock_expires_at,
            "unlockTimeRemaining": remaining,
            "progressToUnlock": progress_to_unlock(pair["count"]),
            "user": {
                "id": other_id,
                "name": other.get("name"),
                "age": calculate_age(other.get("date_of_birth")),
                "photoUrl": get_primary_photo_url(db, other_id),
                "isVerified": bool(other.get("is_verified")),
            },
        })
    return results


def check_crossed_paths_unlock(user_a, user_b, db=None, now=None):
    db = resolve_db(db)
    now = now or utc_now()
    user1_id, user2_id = pair_key(user_a, user_b)

    pair = db[CROSSED_PATHS].find_one({"user1_id": user1_id, "user2_id": user2_id})
    if not pair:
        return {"isUnlocked": False, "count": 0, "unlockTimeRemaining": 0}

    is_unlocked, unlock_expires_at, remaining = _unlock_state(pair, now)
    result = {"isUnlocked": is_unlocked, "count": pair["count"], "unlockTimeRemaining": remaining}
    if unlock_expires_at is not None:
        result["unlockExpiresAt"] = unlock_expires_at
    return result


def get_crossed_paths_count(user_id, db=None):
    """Badge count: number of pairs the user has crossed paths in."""
    db = resolve_db(db)
    return db[CROSSED_PATHS].count_documents(
        {"$or": [{"user1_id": user_id}, {"user2_id": user_id}]}
    )
