"""
Proximity matching shared by location ingest, the anonymized alert engine
and the map read path.

A candidate is kept when it is another active, verified user whose location
(raw or published, depending on the scan) is present, at most six days old
and within the radius, whose preferences match the reference user's in both
directions, and who is not blocked in either direction.
"""
import logging
from collections import namedtuple

from . import geo
from .collaborators import iter_users, get_blocked_user_ids
from ..config import PROXIMITY_METERS, FADED_WINDOW
from ..db.mongo import as_utc

logger = logging.getLogger(__name__)

RAW = "raw"
PUBLISHED = "published"

NearbyMatch = namedtuple("NearbyMatch", ["user", "distance_m", "location_age"])


def is_verified(user):
    return (user.get("verification_status") or "unverified") == "verified"


def preferences_match(user_a, user_b):
    """Both sides must be looking for the other's gender."""
    a_wants = user_a.get("looking_for") or []
    b_wants = user_b.get("looking_for") or []
    return user_b.get("gender") in a_wants and user_a.get("gender") in b_wants


def location_of(user, source=RAW):
    """(lat, lng, located_at) for the chosen location source, any of which may be None."""
    if source == PUBLISHED:
        return user.get("published_lat"), user.get("published_lng"), as_utc(user.get("published_at"))
    located_at = user.get("last_location_updated_at") or user.get("last_active")
    return user.get("latitude"), user.get("longitude"), as_utc(located_at)


def within_radius(distance_m, radius_m=PROXIMITY_METERS):
    return distance_m <= radius_m


def find_nearby_users(db, current_user, latitude, longitude, now, source=RAW, radius_m=PROXIMITY_METERS):
    """
    Scan every user and return the eligible ones near (latitude, longitude).

    Args:
        db: pymongo Database
        current_user: the reference user's document
        latitude, longitude: reference point in degrees
        now: aware UTC datetime the staleness cutoff is measured from
        source: RAW to compare against live locations, PUBLISHED for the projection
        radius_m: inclusive search radius in meters

    Returns:
        list of NearbyMatch in scan order (user_id ascending)
    """
    user_id = current_user["user_id"]
    blocked_ids = get_blocked_user_ids(db, user_id)
    matches = []
    scanned = 0

    for user in iter_users(db):
        scanned += 1
        if user["user_id"] == user_id:
            continue
        if not user.get("is_active"):
            continue
        if not is_verified(user):
            continue

        lat, lng, located_at = location_of(user, source)
        if lat is None or lng is None or located_at is None:
            continue
        age = now - located_at
        if age > FADED_WINDOW:
            continue

        distance = geo.haversine_m(latitude, longitude, lat, lng)
        if not within_radius(distance, radius_m):
            continue

        if not preferences_match(current_user, user):
            continue
        if user["user_id"] in blocked_ids:
            continue

        matches.append(NearbyMatch(user, distance, age))

    logger.debug(f"Scanned {scanned} users around {user_id} ({source}): {len(matches)} nearby")
    return matches
