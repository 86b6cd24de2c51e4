"""Document models for the Game Reviews API.

The store is schema-flexible; this module fixes the collection names, the
canonical field sets, and the helpers that turn stored documents into
response payloads.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

from .errors import NotFoundError

USERS = "users"
REVIEWS = "reviews"
WATCHLIST = "watchlist"

#: Fields every new review must carry, checked in this order
REQUIRED_REVIEW_FIELDS = (
    "title",
    "image",
    "genre",
    "platform",
    "rating",
    "description",
    "reviewerName",
    "userEmail",
)

#: Fields replaced by a review update
MUTABLE_REVIEW_FIELDS = (
    "title",
    "image",
    "genre",
    "platform",
    "rating",
    "releaseYear",
    "publisher",
    "price",
    "description",
    "review",
)

#: User fields that a profile update may not touch
PROTECTED_USER_FIELDS = ("_id", "email", "createdAt", "reviews", "watchlist")

#: Legacy aliases, canonical field -> older field name
LEGACY_REVIEW_ALIASES = {
    "reviewerName": "userName",
    "userEmail": "reviewerEmail",
    "createdAt": "publishedDate",
}

PRICE_NOT_AVAILABLE = "N/A"


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_object_id(value: str, label: str = "Review") -> ObjectId:
    """
    Parse a document identifier.

    A malformed identifier cannot match any document, so it is reported
    the same way as a missing one.

    Raises:
        NotFoundError: If ``value`` is not a valid ObjectId.
    """
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{label} not found")


def canonical_review_id(value: str) -> str:
    """
    Canonical string form of a review identifier.

    Watchlist entries store ``reviewId`` in this form, so lookups must use
    it too. Values that are not ObjectIds are returned unchanged.
    """
    try:
        return str(ObjectId(value))
    except (InvalidId, TypeError):
        return value


def is_missing(value: Any) -> bool:
    """``None`` and blank strings count as missing; ``0`` does not."""
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def review_owner(doc: Dict[str, Any]) -> Optional[str]:
    """Owner email of a stored review, honouring the legacy alias."""
    return doc.get("userEmail") or doc.get("reviewerEmail")


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of ``doc`` with ObjectIds converted to strings."""
    if doc is None:
        return None
    result = {}
    for key, value in doc.items():
        if isinstance(value, ObjectId):
            result[key] = str(value)
        elif isinstance(value, list):
            result[key] = [str(v) if isinstance(v, ObjectId) else v for v in value]
        else:
            result[key] = value
    return result


def normalize_legacy_fields(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Fill canonical review fields from their legacy aliases."""
    doc = dict(doc)
    doc["reviewerName"] = doc.get("reviewerName") or doc.get("userName") or "Anonymous"
    doc["userEmail"] = (
        doc.get("userEmail") or doc.get("reviewerEmail") or "No email provided"
    )
    doc["createdAt"] = doc.get("createdAt") or doc.get("publishedDate") or utcnow()
    return doc


def format_rating(value: Any) -> Optional[str]:
    """Render a rating with one decimal place, e.g. ``4 -> "4.0"``."""
    try:
        return f"{float(value):.1f}"
    except (TypeError, ValueError):
        return None


def format_price(value: Any) -> str:
    """
    Render a price with two decimal places, or ``"N/A"`` when unset.

    A review submitted without a price is stored with ``0``, so a zero
    price is reported as not available too.
    """
    if is_missing(value):
        return PRICE_NOT_AVAILABLE
    try:
        price = float(value)
    except (TypeError, ValueError):
        return PRICE_NOT_AVAILABLE
    if not price:
        return PRICE_NOT_AVAILABLE
    return f"{price:.2f}"


def render_review(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a stored review for a response."""
    review = normalize_legacy_fields(serialize_doc(doc))
    review["rating"] = format_rating(review.get("rating"))
    review["price"] = format_price(review.get("price"))
    return review
