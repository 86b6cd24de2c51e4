"""Pydantic schemas for request and response payloads of the Game Reviews API."""

from typing import Optional

from pydantic import BaseModel, field_validator


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class UserCreate(BaseModel):
    """Payload for registering a user; extra profile fields are kept."""

    email: Optional[str] = None

    class Config:
        extra = "allow"


class UserUpdate(BaseModel):
    """Arbitrary profile fields to merge into an existing user."""

    class Config:
        extra = "allow"


class RegisterResult(BaseModel):
    """Outcome of a registration call."""

    message: str
    alreadyExists: bool
    acknowledged: bool = True
    insertedId: Optional[str] = None


class ReviewBase(BaseModel):
    """Shared content fields for review schemas.

    Every field is optional here so that presence can be checked in
    declaration order and reported by name.
    """

    title: Optional[str] = None
    image: Optional[str] = None
    genre: Optional[str] = None
    platform: Optional[str] = None
    rating: Optional[float] = None
    description: Optional[str] = None
    releaseYear: Optional[int] = None
    publisher: Optional[str] = None
    price: Optional[float] = None
    review: Optional[str] = None

    @field_validator("rating", "price", mode="before")
    @classmethod
    def empty_number_is_absent(cls, value):
        return _blank_to_none(value)

    @field_validator("releaseYear", mode="before")
    @classmethod
    def year_is_whole(cls, value):
        """Drop any fractional part, so ``2020.5`` is stored as ``2020``."""
        value = _blank_to_none(value)
        if isinstance(value, bool):
            return value
        if isinstance(value, (float, str)):
            try:
                return int(float(value))
            except (ValueError, OverflowError):
                return value
        return value


class ReviewCreate(ReviewBase):
    """Schema for submitting a new review."""

    reviewerName: Optional[str] = None
    userEmail: Optional[str] = None


class ReviewUpdate(ReviewBase):
    """Schema for replacing a review's content; ``userEmail`` proves ownership."""

    userEmail: Optional[str] = None


class WatchlistAdd(BaseModel):
    """Payload for bookmarking a review; display fields may ride along."""

    reviewId: Optional[str] = None
    userEmail: Optional[str] = None

    class Config:
        extra = "allow"


class InsertResult(BaseModel):
    """Acknowledgement of a newly stored document."""

    acknowledged: bool = True
    insertedId: str


class UpdateCounts(BaseModel):
    """Matched and modified document counts of an update."""

    matchedCount: int
    modifiedCount: int


class UpdateResult(BaseModel):
    """Response to a review update."""

    message: str
    result: UpdateCounts


class DeleteResult(BaseModel):
    """Response to a review deletion."""

    success: bool = True
    message: str


class WatchlistStatus(BaseModel):
    """Whether a review is on a user's watchlist."""

    isInWatchlist: bool


class Message(BaseModel):
    """Plain confirmation message."""

    message: str
