import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pymongo.errors import PyMongoError

from ..config import DEBUG_MODE, DEFAULT_CROSSED_PATHS_LIMIT
from ..core.crossed_alerts import detect_crossed_users, cleanup_expired_crossed_events
from ..core.crossings import get_crossed_paths, check_crossed_paths_unlock, get_crossed_paths_count
from ..core.history import get_cross_path_history, cleanup_expired_history
from ..core.location import publish_location, record_location
from ..core.nearby_map import get_nearby_users
from ..db.mongo import get_db, setup_collections
from ..schemas.schemas import (
    LocationPayload,
    CrossedAlertResult,
    PublishLocationResponse,
    RecordLocationResponse,
    NearbyUser,
    CrossPathHistoryEntry,
    CrossedPath,
    UnlockStatus,
    CleanupResult,
)
from ..utils.scheduler import start_scheduler

logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_collections()
    scheduler = start_scheduler()
    logger.info("[✓] Crossed paths service started")
    yield
    scheduler.shutdown(wait=False)
    logger.info("[i] Crossed paths service shutting down")


app = FastAPI(title="Crossed Paths", version="1.0.0", lifespan=lifespan)


def get_database():
    return get_db()


def _store_unavailable(e):
    logger.error(f"[✗] Store error: {e}")
    return HTTPException(status_code=503, detail="Storage unavailable")


@app.get("/", tags=["health"])
def root():
    return {"status": "ok", "service": "crossed-paths"}


@app.post("/users/{user_id}/location", response_model=RecordLocationResponse,
          response_model_exclude_none=True)
def post_location(user_id: str, payload: LocationPayload, db=Depends(get_database)):
    try:
        return record_location(user_id, payload.latitude, payload.longitude, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.post("/users/{user_id}/published-location", response_model=PublishLocationResponse,
          response_model_exclude_none=True)
def post_published_location(user_id: str, payload: LocationPayload, db=Depends(get_database)):
    try:
        return publish_location(user_id, payload.latitude, payload.longitude, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.post("/users/{user_id}/crossed-alert", response_model=CrossedAlertResult,
          response_model_exclude_none=True)
def post_crossed_alert(user_id: str, payload: LocationPayload, db=Depends(get_database)):
    try:
        return detect_crossed_users(user_id, payload.latitude, payload.longitude, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.get("/users/{user_id}/nearby", response_model=List[NearbyUser])
def nearby_users(user_id: str, db=Depends(get_database)):
    try:
        return get_nearby_users(user_id, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.get("/users/{user_id}/cross-path-history", response_model=List[CrossPathHistoryEntry])
def cross_path_history(user_id: str, db=Depends(get_database)):
    try:
        return get_cross_path_history(user_id, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.get("/users/{user_id}/crossed-paths", response_model=List[CrossedPath])
def crossed_paths(user_id: str, limit: Optional[int] = Query(None, ge=1, le=200), db=Depends(get_database)):
    try:
        return get_crossed_paths(user_id, limit=limit or DEFAULT_CROSSED_PATHS_LIMIT, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.get("/users/{user_id}/crossed-paths/count")
def crossed_paths_count(user_id: str, db=Depends(get_database)):
    try:
        return get_crossed_paths_count(user_id, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.get("/crossed-paths/unlock", response_model=UnlockStatus, response_model_exclude_none=True)
def crossed_paths_unlock(user_a: str, user_b: str, db=Depends(get_database)):
    try:
        return check_crossed_paths_unlock(user_a, user_b, db=db)
    except PyMongoError as e:
        raise _store_unavailable(e)


@app.post("/maintenance/cleanup")
def run_cleanup(db=Depends(get_database)):
    try:
        return {
            "crossedEvents": CleanupResult(**cleanup_expired_crossed_events(db=db)),
            "history": CleanupResult(**cleanup_expired_history(db=db)),
        }
    except PyMongoError as e:
        raise _store_unavailable(e)
