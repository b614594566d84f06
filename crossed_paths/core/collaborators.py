"""Lookups against the stores this engine does not own: users, blocks, photos, notifications."""
import logging

from pymongo.errors import PyMongoError

from ..db.mongo import USERS, BLOCKS, PHOTOS, NOTIFICATIONS

logger = logging.getLogger(__name__)


def get_user(db, user_id):
    return db[USERS].find_one({"user_id": user_id})


def iter_users(db):
    # Full scan; ordered so that "first candidate" picks are reproducible.
    return db[USERS].find({}).sort("user_id", 1)


def get_blocked_user_ids(db, user_id):
    """Ids blocked by the user plus ids that blocked the user."""
    blocked = set()
    for block in db[BLOCKS].find({"blocker_id": user_id}, {"blocked_user_id": 1}):
        blocked.add(block["blocked_user_id"])
    for block in db[BLOCKS].find({"blocked_user_id": user_id}, {"blocker_id": 1}):
        blocked.add(block["blocker_id"])
    return blocked


def get_primary_photo_url(db, user_id):
    photo = db[PHOTOS].find_one({"user_id": user_id, "is_primary": True})
    return photo.get("url") if photo else None


def notify_crossed_paths_unlock(db, user1_id, user2_id, count, now):
    """Fire-and-forget milestone notification to both users of a pair."""
    body = f"You've crossed paths {count} times! Enjoy 48 hours of free messaging."
    docs = [
        {
            "user_id": recipient,
            "type": "crossed_paths",
            "title": "Crossed Paths Milestone!",
            "body": body,
            "data": {"user_id": other},
            "created_at": now,
        }
        for recipient, other in ((user1_id, user2_id), (user2_id, user1_id))
    ]
    try:
        db[NOTIFICATIONS].insert_many(docs)
        logger.info(f"[✓] Sent crossed paths unlock notifications to {user1_id} and {user2_id}")
    except PyMongoError as e:
        logger.error(f"[✗] Error sending unlock notifications for pair {user1_id}/{user2_id}: {e}")
