import logging

from .mongo import USERS, resolve_db, setup_collections

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    {
        "user_id": "user_a",
        "name": "Alice",
        "gender": "female",
        "looking_for": ["male"],
        "date_of_birth": "1995-04-12",
        "city": "Santa Cruz",
    },
    {
        "user_id": "user_b",
        "name": "Bob",
        "gender": "male",
        "looking_for": ["female"],
        "date_of_birth": "1993-09-30",
        "city": "Santa Cruz",
    },
]

# where each sample user stands in the two-user crossing scenario, about 55m apart
SAMPLE_LOCATIONS = {
    "user_a": (37.0000, -122.0000),
    "user_b": (37.0005, -122.0000),
}


def insert_sample_users(db=None):
    """Seed two verified, active, mutually interested users without any recorded location."""
    db = resolve_db(db)
    setup_collections(db)
    for sample in SAMPLE_USERS:
        doc = dict(sample)
        doc.update({"is_active": True, "verification_status": "verified", "is_verified": True,
                    "hide_distance": False})
        db[USERS].update_one({"user_id": doc["user_id"]}, {"$set": doc}, upsert=True)
    logger.info(f"[✓] Inserted {len(SAMPLE_USERS)} sample users")
    return [s["user_id"] for s in SAMPLE_USERS]


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    insert_sample_users()
