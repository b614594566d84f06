from datetime import datetime, timezone

import mongomock
import pytest

from crossed_paths.db.mongo import USERS, setup_collections


@pytest.fixture
def db():
    client = mongomock.MongoClient(tz_aware=True)
    database = client["crossed_paths_test"]
    setup_collections(database)
    return database


@pytest.fixture
def now():
    return datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_user(db, now):
    """Insert an active, verified user; every default user is interested in every other."""
    def _make(user_id, **fields):
        doc = {
            "user_id": user_id,
            "name": user_id.capitalize(),
            "gender": "female",
            "looking_for": ["female"],
            "is_active": True,
            "verification_status": "verified",
            "is_verified": True,
            "city": "Lisbon",
            "date_of_birth": "1990-06-15",
        }
        doc.update(fields)
        db[USERS].insert_one(dict(doc))
        return doc
    return _make

