"""Review routes for the Game Reviews API."""

from fastapi import APIRouter, Depends, Query, status

from . import crud, schemas
from .core import get_settings
from .database import Database, get_db

router = APIRouter(tags=["reviews"])


@router.post(
    "/reviews", response_model=schemas.InsertResult, status_code=status.HTTP_201_CREATED
)
def create_review(review_in: schemas.ReviewCreate, db: Database = Depends(get_db)):
    """
    Submit a new review.

    Args:
        review_in (ReviewCreate): Review data.
        db (Database): Store handle.

    Raises:
        ValidationError: If a required field is missing.

    Returns:
        InsertResult: Identifier of the created review.
    """
    return schemas.InsertResult(insertedId=crud.create_review(db, review_in))


@router.get("/reviews")
def list_reviews(db: Database = Depends(get_db)):
    """List every review, newest first."""
    return crud.list_reviews(db)


@router.get("/reviews/{review_id}")
def get_review(review_id: str, db: Database = Depends(get_db)):
    """
    Retrieve a single review.

    Raises:
        NotFoundError: If the review does not exist.
    """
    return crud.get_review(db, review_id)


@router.put("/reviews/{review_id}", response_model=schemas.UpdateResult)
def update_review(
    review_id: str,
    review_in: schemas.ReviewUpdate,
    db: Database = Depends(get_db),
):
    """
    Replace the content of a review.

    Only the owner, identified by ``userEmail`` in the body, may update it.

    Args:
        review_id (str): Review identifier.
        review_in (ReviewUpdate): New review content.
        db (Database): Store handle.

    Raises:
        NotFoundError: If the review does not exist.
        AuthorizationError: If the requester is not the owner.

    Returns:
        UpdateResult: Store update counts.
    """
    result = crud.update_review(db, review_id, review_in)
    return schemas.UpdateResult(
        message="Review updated successfully",
        result=schemas.UpdateCounts(
            matchedCount=result.matched_count, modifiedCount=result.modified_count
        ),
    )


@router.delete("/reviews/{review_id}", response_model=schemas.DeleteResult)
def delete_review(
    review_id: str,
    userEmail: str | None = Query(None),
    db: Database = Depends(get_db),
):
    """
    Delete a review owned by the requester.

    Watchlist entries for the review are removed as well.

    Args:
        review_id (str): Review identifier.
        userEmail (str | None): Requester email.
        db (Database): Store handle.

    Returns:
        DeleteResult: Deletion status.
    """
    crud.delete_review(db, review_id, userEmail)
    return schemas.DeleteResult(message="Review deleted successfully")


@router.get("/highest-rated-games")
def highest_rated_games(
    limit: int | None = Query(None, ge=1, le=50),
    db: Database = Depends(get_db),
):
    """
    List the best rated games.

    Args:
        limit (int | None): Number of games, defaults to ``TOP_RATED_LIMIT``.
        db (Database): Store handle.

    Returns:
        list[dict]: Reviews ordered by rating, then recency.
    """
    return crud.list_top_rated(db, limit or get_settings().TOP_RATED_LIMIT)
