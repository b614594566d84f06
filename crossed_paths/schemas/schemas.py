from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LocationPayload(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CrossedAlertResult(BaseModel):
    """
    Outcome of a "someone crossed you" check.

    Deliberately has no field able to carry a user id; extra fields are
    rejected so nothing identifying can be attached later.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    triggered: bool
    reason: Optional[Literal["cooldown", "none", "user_not_found"]] = None


class PublishLocationResponse(BaseModel):
    success: bool
    published: bool
    reason: Optional[str] = None
    publishedAt: Optional[datetime] = None
    nextPublishAt: Optional[datetime] = None


class RecordLocationResponse(BaseModel):
    success: bool
    nearbyCount: int
    skipped: Optional[bool] = None
    reason: Optional[str] = None


class NearbyUser(BaseModel):
    id: str
    name: Optional[str] = None
    age: Optional[int] = None
    publishedLat: float
    publishedLng: float
    freshness: Literal["solid", "faded"]
    photoUrl: Optional[str] = None
    isVerified: bool
    hideDistance: bool


class CrossPathHistoryEntry(BaseModel):
    id: str
    otherUserId: str
    areaName: str
    createdAt: datetime
    photoUrl: Optional[str] = None
    initial: str


class CrossedUserSummary(BaseModel):
    id: str
    name: Optional[str] = None
    age: Optional[int] = None
    photoUrl: Optional[str] = None
    isVerified: bool


class CrossedPath(BaseModel):
    id: str
    count: int
    lastCrossedAt: datetime
    isUnlocked: bool
    unlockExpiresAt: Optional[datetime] = None
    unlockTimeRemaining: int
    progressToUnlock: float
    user: CrossedUserSummary


class UnlockStatus(BaseModel):
    isUnlocked: bool
    count: int
    unlockExpiresAt: Optional[datetime] = None
    unlockTimeRemaining: int


class CleanupResult(BaseModel):
    deleted: int
