from .collaborators import get_user, get_primary_photo_url
from .geo import calculate_age
from .proximity import find_nearby_users, PUBLISHED
from ..config import SOLID_WINDOW, FADED_WINDOW
from ..db.mongo import resolve_db, utc_now


def freshness_tier(age):
    """'solid' up to 3 days since publish, 'faded' up to 6, None past that."""
    if age <= SOLID_WINDOW:
        return "solid"
    if age <= FADED_WINDOW:
        return "faded"
    return None


def get_nearby_users(user_id, db=None, now=None):
    """
    Map markers around the requester. Coordinates are the raw published ones;
    fuzzing them according to hideDistance is left to the client.
    """
    db = resolve_db(db)
    now = now or utc_now()

    current_user = get_user(db, user_id)
    if not current_user:
        return []

    my_lat = current_user.get("published_lat")
    my_lng = current_user.get("published_lng")
    if my_lat is None or my_lng is None:
        my_lat, my_lng = current_user.get("latitude"), current_user.get("longitude")
    if my_lat is None or my_lng is None:
        return []

    markers = []
    for match in find_nearby_users(db, current_user, my_lat, my_lng, now, source=PUBLISHED):
        tier = freshness_tier(match.location_age)
        if tier is None:
            continue
        user = match.user
        markers.append({
            "id": user["user_id"],
            "name": user.get("name"),
            "age": calculate_age(user.get("date_of_birth")),
            "publishedLat": user["published_lat"],
            "publishedLng": user["published_lng"],
            "freshness": tier,
            "photoUrl": get_primary_photo_url(db, user["user_id"]),
            "isVerified": bool(user.get("is_verified")),
            "hideDistance": bool(user.get("hide_distance", False)),
        })
    return markers
