"""CRUD operations for users, reviews and watchlist entries.

This module contains store interaction logic, isolated from FastAPI route
handlers. Review and watchlist writes mirror their identifiers into the
owning user's embedded ``reviews``/``watchlist`` arrays; those mirror
writes are best-effort and never undo the primary write.
"""

from typing import Any, Dict, List

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from . import schemas
from .database import Database
from .errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from .logging_config import get_logger
from .models import (
    LEGACY_REVIEW_ALIASES,
    MUTABLE_REVIEW_FIELDS,
    PROTECTED_USER_FIELDS,
    REQUIRED_REVIEW_FIELDS,
    canonical_review_id,
    is_missing,
    render_review,
    review_owner,
    serialize_doc,
    to_object_id,
    utcnow,
)

logger = get_logger(__name__)


def _require(data: Dict[str, Any], fields) -> None:
    """Raise for the first field in ``fields`` that is missing from ``data``."""
    for field in fields:
        if is_missing(data.get(field)):
            raise ValidationError(f"{field} is required")


# Users


def register_user(db: Database, user_in: schemas.UserCreate) -> schemas.RegisterResult:
    """
    Register a user unless one with the same email already exists.

    A repeat registration is a successful no-op rather than an error.

    Args:
        db (Database): Store handle.
        user_in (UserCreate): Email plus arbitrary profile fields.

    Raises:
        ValidationError: If no email was supplied.

    Returns:
        RegisterResult: Whether the user was created or already existed.
    """
    profile = user_in.model_dump()
    email = profile.get("email")
    if is_missing(email):
        raise ValidationError("email is required")

    already_exists = schemas.RegisterResult(
        message="User already exists", alreadyExists=True
    )
    if db.users.find_one({"email": email}) is not None:
        logger.info("user_already_exists", email=email)
        return already_exists

    for field in PROTECTED_USER_FIELDS:
        if field != "email":
            profile.pop(field, None)
    document = {**profile, "createdAt": utcnow(), "reviews": [], "watchlist": []}
    try:
        result = db.users.insert_one(document)
    except DuplicateKeyError:
        logger.info("user_already_exists", email=email, source="unique_index")
        return already_exists

    logger.info("user_registered", email=email)
    return schemas.RegisterResult(
        message="User created",
        alreadyExists=False,
        insertedId=str(result.inserted_id),
    )


def get_user(db: Database, email: str) -> Dict[str, Any]:
    """
    Retrieve a user profile by email.

    Raises:
        NotFoundError: If no user has this email.
    """
    user = db.users.find_one({"email": email})
    if user is None:
        raise NotFoundError("User not found")
    return serialize_doc(user)


def update_profile(db: Database, email: str, user_in: schemas.UserUpdate) -> Dict[str, Any]:
    """
    Merge arbitrary profile fields into an existing user.

    Identity, creation time and the mirrored ``reviews``/``watchlist``
    arrays are never written through this path.

    Args:
        db (Database): Store handle.
        email (str): Email of the user to update.
        user_in (UserUpdate): Fields to merge.

    Raises:
        ValidationError: If nothing updatable remains or a field name is invalid.
        NotFoundError: If no user has this email.

    Returns:
        dict: The updated user.
    """
    changes = {
        key: value
        for key, value in user_in.model_dump().items()
        if key not in PROTECTED_USER_FIELDS
    }
    if not changes:
        raise ValidationError("No fields to update")
    for key in changes:
        if key.startswith("$") or "." in key:
            raise ValidationError(f"Invalid field name: {key}")

    result = db.users.update_one({"email": email}, {"$set": changes})
    if result.matched_count == 0:
        raise NotFoundError("User not found")
    logger.info("user_updated", email=email, fields=sorted(changes))
    return get_user(db, email)


def _mirror(db: Database, email: str, operator: str, field: str, value) -> bool:
    """Apply ``$push``/``$pull`` of ``value`` on a user's ``field`` array."""
    try:
        result = db.users.update_one({"email": email}, {operator: {field: value}})
    except PyMongoError as exc:
        logger.warning(
            "user_mirror_failed",
            email=email,
            field=field,
            operation=operator,
            value=str(value),
            error=str(exc),
        )
        return False
    if result.matched_count == 0:
        logger.info("user_mirror_skipped", email=email, field=field, reason="no user")
        return False
    return True


def attach_review(db: Database, email: str, review_id: ObjectId) -> bool:
    """Append a review id to the owner's ``reviews`` array."""
    return _mirror(db, email, "$push", "reviews", review_id)


def detach_review(db: Database, email: str, review_id: ObjectId) -> bool:
    """Remove a review id from the owner's ``reviews`` array."""
    return _mirror(db, email, "$pull", "reviews", review_id)


def attach_watchlist_entry(db: Database, email: str, review_id: str) -> bool:
    """Append a bookmarked review id to the user's ``watchlist`` array."""
    return _mirror(db, email, "$push", "watchlist", review_id)


def detach_watchlist_entry(db: Database, email: str, review_id: str) -> bool:
    """Remove a bookmarked review id from the user's ``watchlist`` array."""
    return _mirror(db, email, "$pull", "watchlist", review_id)


# Reviews


def create_review(db: Database, review_in: schemas.ReviewCreate) -> str:
    """
    Validate and persist a new review.

    Args:
        db (Database): Store handle.
        review_in (ReviewCreate): Submitted review.

    Raises:
        ValidationError: Naming the first required field that is missing.

    Returns:
        str: Identifier of the new review.
    """
    data = review_in.model_dump()
    _require(data, REQUIRED_REVIEW_FIELDS)

    document = {key: value for key, value in data.items() if value is not None}
    document["price"] = data["price"] if data["price"] is not None else 0.0
    document["createdAt"] = utcnow()

    result = db.reviews.insert_one(document)
    review_id = result.inserted_id
    logger.info("review_created", review_id=str(review_id), email=document["userEmail"])

    attach_review(db, document["userEmail"], review_id)
    return str(review_id)


def get_review(db: Database, review_id: str) -> Dict[str, Any]:
    """
    Retrieve a single review shaped for a response.

    Raises:
        NotFoundError: If the review does not exist.
    """
    review = db.reviews.find_one({"_id": to_object_id(review_id)})
    if review is None:
        raise NotFoundError("Review not found")
    return render_review(review)


def update_review(db: Database, review_id: str, review_in: schemas.ReviewUpdate):
    """
    Replace the mutable fields of a review on behalf of its owner.

    Identifier, owner email and ``createdAt`` are never changed.

    Args:
        db (Database): Store handle.
        review_id (str): Review identifier.
        review_in (ReviewUpdate): New content plus the requester's email.

    Raises:
        NotFoundError: If the review does not exist.
        AuthorizationError: If the requester is not the owner.

    Returns:
        UpdateResult: Result of the store update.
    """
    oid = to_object_id(review_id)
    existing = db.reviews.find_one({"_id": oid})
    if existing is None:
        raise NotFoundError("Review not found")
    if is_missing(review_in.userEmail) or review_owner(existing) != review_in.userEmail:
        raise AuthorizationError("Not authorized to update this review")

    data = review_in.model_dump()
    changes = {field: data.get(field) for field in MUTABLE_REVIEW_FIELDS}
    if changes["price"] is None:
        changes["price"] = 0.0
    changes["updatedAt"] = utcnow()

    result = db.reviews.update_one({"_id": oid}, {"$set": changes})
    if result.matched_count == 0:
        raise NotFoundError("Review not found")
    logger.info("review_updated", review_id=review_id, email=review_in.userEmail)
    return result


def delete_review(db: Database, review_id: str, requester_email: str | None) -> None:
    """
    Delete a review on behalf of its owner and cascade the removal.

    The cascade detaches the id from the owner's ``reviews`` array, removes
    every watchlist entry for the review and detaches it from the watching
    users' arrays. Cascade failures are logged and do not undo the delete.

    Raises:
        ValidationError: If no requester email was supplied.
        NotFoundError: If the review does not exist.
        AuthorizationError: If the requester is not the owner.
    """
    if is_missing(requester_email):
        raise ValidationError("User email is required")

    oid = to_object_id(review_id)
    review = db.reviews.find_one({"_id": oid})
    if review is None:
        raise NotFoundError("Review not found")
    if review_owner(review) != requester_email:
        raise AuthorizationError("Not authorized to delete this review")

    result = db.reviews.delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFoundError("Review not found")
    review_id = str(oid)
    logger.info("review_deleted", review_id=review_id, email=requester_email)

    detach_review(db, requester_email, oid)
    try:
        removed = remove_watchlist_for_review(db, review_id)
    except PyMongoError as exc:
        logger.warning("review_cascade_failed", review_id=review_id, error=str(exc))
        return
    for entry in removed:
        detach_watchlist_entry(db, entry.get("userEmail"), review_id)


def list_reviews(db: Database) -> List[Dict[str, Any]]:
    """Return all reviews, newest first."""
    cursor = db.reviews.find().sort("createdAt", DESCENDING)
    return [render_review(review) for review in cursor]


def list_top_rated(db: Database, limit: int = 6) -> List[Dict[str, Any]]:
    """
    Return the highest rated reviews.

    Ties on rating are broken by creation time, newest first.

    Args:
        db (Database): Store handle.
        limit (int): Maximum number of reviews to return.
    """
    cursor = (
        db.reviews.find()
        .sort([("rating", DESCENDING), ("createdAt", DESCENDING)])
        .limit(limit)
    )
    return [render_review(review) for review in cursor]


def list_reviews_by_owner(db: Database, email: str) -> List[Dict[str, Any]]:
    """Return the reviews owned by ``email``, newest first."""
    cursor = db.reviews.find({"userEmail": email}).sort("createdAt", DESCENDING)
    return [render_review(review) for review in cursor]


def migrate_legacy_reviews(db: Database) -> int:
    """
    Rewrite legacy review aliases into the canonical fields.

    A canonical field that is already set keeps its value; the alias is
    dropped either way.

    Returns:
        int: Number of migrated reviews.
    """
    legacy_filter = {
        "$or": [{alias: {"$exists": True}} for alias in LEGACY_REVIEW_ALIASES.values()]
    }
    migrated = 0
    for review in db.reviews.find(legacy_filter):
        changes = {}
        obsolete = {}
        for canonical, alias in LEGACY_REVIEW_ALIASES.items():
            if alias not in review:
                continue
            if is_missing(review.get(canonical)) and not is_missing(review[alias]):
                changes[canonical] = review[alias]
            obsolete[alias] = ""

        update: Dict[str, Any] = {"$unset": obsolete}
        if changes:
            update["$set"] = changes
        db.reviews.update_one({"_id": review["_id"]}, update)
        migrated += 1

    if migrated:
        logger.info("legacy_reviews_migrated", count=migrated)
    return migrated


# Watchlist


def add_to_watchlist(db: Database, entry_in: schemas.WatchlistAdd) -> str:
    """
    Bookmark a review for a user.

    Args:
        db (Database): Store handle.
        entry_in (WatchlistAdd): Review id, user email and display fields.

    Raises:
        ValidationError: If the review id or user email is missing.
        NotFoundError: If the review does not exist.
        ConflictError: If the pair is already on the watchlist.

    Returns:
        str: Identifier of the new entry.
    """
    entry = entry_in.model_dump()
    _require(entry, ("reviewId", "userEmail"))
    entry.pop("_id", None)
    oid = to_object_id(entry["reviewId"])
    review_id = entry["reviewId"] = str(oid)
    email = entry["userEmail"]

    if db.reviews.find_one({"_id": oid}, {"_id": 1}) is None:
        raise NotFoundError("Review not found")
    if db.watchlist.find_one({"reviewId": review_id, "userEmail": email}) is not None:
        raise ConflictError("Already in watchlist")

    entry["addedAt"] = utcnow()
    try:
        result = db.watchlist.insert_one(entry)
    except DuplicateKeyError:
        raise ConflictError("Already in watchlist")
    logger.info("watchlist_entry_added", review_id=review_id, email=email)

    attach_watchlist_entry(db, email, review_id)
    return str(result.inserted_id)


def is_watchlisted(db: Database, review_id: str, email: str | None) -> bool:
    """
    Check whether a user has bookmarked a review.

    Raises:
        ValidationError: If no user email was supplied.
    """
    if is_missing(email):
        raise ValidationError("User email is required")
    review_id = canonical_review_id(review_id)
    return db.watchlist.find_one({"reviewId": review_id, "userEmail": email}) is not None


def list_watchlist(db: Database, email: str) -> List[Dict[str, Any]]:
    """Return a user's watchlist entries, most recently added first."""
    cursor = db.watchlist.find({"userEmail": email}).sort("addedAt", DESCENDING)
    return [serialize_doc(entry) for entry in cursor]


def remove_from_watchlist(db: Database, review_id: str, email: str | None) -> None:
    """
    Remove a bookmarked review from a user's watchlist.

    Raises:
        ValidationError: If no user email was supplied.
        NotFoundError: If the pair is not on the watchlist.
    """
    if is_missing(email):
        raise ValidationError("User email is required")
    review_id = canonical_review_id(review_id)
    result = db.watchlist.delete_one({"reviewId": review_id, "userEmail": email})
    if result.deleted_count == 0:
        raise NotFoundError("Item not found in watchlist")
    logger.info("watchlist_entry_removed", review_id=review_id, email=email)
    detach_watchlist_entry(db, email, review_id)


def remove_watchlist_for_review(db: Database, review_id: str) -> List[Dict[str, Any]]:
    """
    Delete every watchlist entry for a review.

    Returns:
        list[dict]: The removed entries.
    """
    review_id = canonical_review_id(review_id)
    entries = list(db.watchlist.find({"reviewId": review_id}))
    if entries:
        db.watchlist.delete_many({"reviewId": review_id})
    return entries
