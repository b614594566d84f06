"""Location fields and durations shared by the test modules."""
from datetime import timedelta

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


def located(lat, lng, at):
    """Raw location fields as written by record_location."""
    return {"latitude": lat, "longitude": lng, "last_location_updated_at": at, "last_active": at}


def published(lat, lng, at):
    return {"published_lat": lat, "published_lng": lng, "published_at": at}
