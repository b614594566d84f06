from datetime import timedelta

from crossed_paths.user_fields import HOUR, DAY
from crossed_paths.core.history import (
    area_name_for,
    record_history_entry,
    get_cross_path_history,
    cleanup_expired_history,
)
from crossed_paths.db.mongo import CROSS_PATH_HISTORY, PHOTOS


def test_area_name_is_coarse():
    assert area_name_for({"city": "Porto", "latitude": 41.15}) == "Near Porto"
    assert area_name_for({"city": None}) == "Nearby area"
    assert area_name_for({}) == "Nearby area"


def test_entry_visible_to_both_users(db, now, make_user):
    me = make_user("me", name="Mia")
    other = make_user("other", name="Otto", city="Porto")
    db[PHOTOS].insert_one({"user_id": "other", "url": "https://cdn.example/otto.jpg", "is_primary": True})

    entry = record_history_entry(db, me, other, now)

    assert entry["expires_at"] == now + 14 * DAY
    mine = get_cross_path_history("me", db=db, now=now)
    theirs = get_cross_path_history("other", db=db, now=now)
    assert len(mine) == 1 and len(theirs) == 1
    assert mine[0]["otherUserId"] == "other"
    assert mine[0]["areaName"] == "Near Porto"
    assert mine[0]["initial"] == "O"
    assert mine[0]["photoUrl"] == "https://cdn.example/otto.jpg"
    assert mine[0]["createdAt"] == now
    assert theirs[0]["otherUserId"] == "me"
    assert theirs[0]["initial"] == "M"
    assert theirs[0]["photoUrl"] is None


def test_same_pair_deduped_for_24_hours(db, now, make_user):
    me = make_user("me")
    other = make_user("other")

    assert record_history_entry(db, me, other, now) is not None
    assert record_history_entry(db, other, me, now + 23 * HOUR) is None
    assert record_history_entry(db, me, other, now + 24 * HOUR) is not None
    assert db[CROSS_PATH_HISTORY].count_documents({}) == 2


def test_history_capped_to_fifteen_most_recent(db, now, make_user):
    me = make_user("me")
    others = [make_user(f"user{i:02d}") for i in range(20)]
    for i, other in enumerate(others):
        record_history_entry(db, me, other, now + timedelta(minutes=i))

    history = get_cross_path_history("me", db=db, now=now + HOUR)

    assert len(history) == 15
    assert [h["otherUserId"] for h in history] == [f"user{i:02d}" for i in range(19, 4, -1)]
    # trimmed physically at write time, not just hidden
    assert db[CROSS_PATH_HISTORY].count_documents({"$or": [{"user1_id": "me"}, {"user2_id": "me"}]}) == 15


def test_cap_is_applied_to_each_side(db, now, make_user):
    popular = make_user("popular")
    fans = [make_user(f"fan{i:02d}") for i in range(16)]
    for i, fan in enumerate(fans):
        # recorded from the fan's side each time
        record_history_entry(db, fan, popular, now + timedelta(minutes=i))

    assert len(get_cross_path_history("popular", db=db, now=now + HOUR)) == 15
    assert get_cross_path_history("fan00", db=db, now=now + HOUR) == []
    assert len(get_cross_path_history("fan15", db=db, now=now + HOUR)) == 1


def test_inactive_or_missing_other_user_hidden(db, now, make_user):
    me = make_user("me")
    gone = make_user("gone", is_active=False)
    record_history_entry(db, me, gone, now)
    db[CROSS_PATH_HISTORY].insert_one({
        "user1_id": "deleted", "user2_id": "me", "area_name": "Nearby area",
        "created_at": now, "expires_at": now + DAY,
    })

    assert get_cross_path_history("me", db=db, now=now) == []


def test_expired_entries_hidden_then_removed(db, now, make_user):
    me = make_user("me")
    other = make_user("other")
    db[CROSS_PATH_HISTORY].insert_one({
        "user1_id": "me", "user2_id": "other", "area_name": "Nearby area",
        "created_at": now - 15 * DAY, "expires_at": now - timedelta(seconds=1),
    })

    assert get_cross_path_history("me", db=db, now=now) == []
    assert db[CROSS_PATH_HISTORY].count_documents({}) == 1

    assert cleanup_expired_history(db=db, now=now) == {"deleted": 1}
    assert db[CROSS_PATH_HISTORY].count_documents({}) == 0


def test_cleanup_works_in_batches(db, now):
    db[CROSS_PATH_HISTORY].insert_many([
        {"user1_id": "a", "user2_id": f"u{i}", "area_name": "Nearby area",
         "created_at": now - 20 * DAY, "expires_at": now - DAY}
        for i in range(5)
    ])
    db[CROSS_PATH_HISTORY].insert_one({
        "user1_id": "a", "user2_id": "live", "area_name": "Nearby area",
        "created_at": now, "expires_at": now + DAY,
    })

    assert cleanup_expired_history(batch_size=2, db=db, now=now) == {"deleted": 2}
    assert cleanup_expired_history(batch_size=2, db=db, now=now) == {"deleted": 2}
    assert cleanup_expired_history(batch_size=2, db=db, now=now) == {"deleted": 1}
    assert cleanup_expired_history(batch_size=2, db=db, now=now) == {"deleted": 0}
    assert db[CROSS_PATH_HISTORY].count_documents({}) == 1
