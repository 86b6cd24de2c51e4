"""Watchlist routes for the Game Reviews API."""

from fastapi import APIRouter, Depends, Query, status

from . import crud, schemas
from .database import Database, get_db

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


@router.post(
    "/add", response_model=schemas.InsertResult, status_code=status.HTTP_201_CREATED
)
def add_to_watchlist(entry_in: schemas.WatchlistAdd, db: Database = Depends(get_db)):
    """
    Bookmark a review for a user.

    Args:
        entry_in (WatchlistAdd): Review id, user email and display fields.
        db (Database): Store handle.

    Raises:
        ConflictError: If the review is already on the user's watchlist.

    Returns:
        InsertResult: Identifier of the watchlist entry.
    """
    return schemas.InsertResult(insertedId=crud.add_to_watchlist(db, entry_in))


@router.get("/check/{review_id}", response_model=schemas.WatchlistStatus)
def check_watchlist(
    review_id: str,
    userEmail: str | None = Query(None),
    db: Database = Depends(get_db),
):
    """Report whether the user has bookmarked the review."""
    return schemas.WatchlistStatus(
        isInWatchlist=crud.is_watchlisted(db, review_id, userEmail)
    )


@router.delete("/{review_id}", response_model=schemas.Message)
def remove_from_watchlist(
    review_id: str,
    userEmail: str | None = Query(None),
    db: Database = Depends(get_db),
):
    """
    Remove a review from the user's watchlist.

    Raises:
        ValidationError: If no user email was supplied.
        NotFoundError: If the review is not on the watchlist.
    """
    crud.remove_from_watchlist(db, review_id, userEmail)
    return schemas.Message(message="Removed from watchlist successfully")
