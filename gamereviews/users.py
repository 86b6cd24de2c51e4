"""User profile routes for the Game Reviews API."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from . import crud, schemas
from .database import Database, get_db

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=schemas.RegisterResult,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": schemas.RegisterResult}},
)
def register_user(user_in: schemas.UserCreate, db: Database = Depends(get_db)):
    """
    Register a user on first sign-in.

    A repeat call for the same email changes nothing and answers
    ``200`` with ``alreadyExists`` set.

    Args:
        user_in (UserCreate): Email and profile fields.
        db (Database): Store handle.

    Returns:
        RegisterResult: Registration outcome.
    """
    result = crud.register_user(db, user_in)
    if result.alreadyExists:
        return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump())
    return result


@router.get("/{email}")
def read_user(email: str, db: Database = Depends(get_db)):
    """
    Retrieve a user profile.

    Raises:
        NotFoundError: If no user has this email.
    """
    return crud.get_user(db, email)


@router.patch("/{email}")
def update_user(email: str, changes: schemas.UserUpdate, db: Database = Depends(get_db)):
    """
    Merge profile fields into an existing user.

    Args:
        email (str): Email of the user.
        changes (UserUpdate): Fields to merge.
        db (Database): Store handle.

    Returns:
        dict: Updated user profile.
    """
    return crud.update_profile(db, email, changes)


@router.get("/{email}/reviews")
def list_user_reviews(email: str, db: Database = Depends(get_db)):
    """List reviews written by the user, newest first."""
    return crud.list_reviews_by_owner(db, email)


@router.get("/{email}/watchlist")
def list_user_watchlist(email: str, db: Database = Depends(get_db)):
    """List the user's watchlist entries, most recently added first."""
    return crud.list_watchlist(db, email)
