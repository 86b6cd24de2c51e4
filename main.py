"""
Main application entry point for the Game Reviews API.

This module initializes the FastAPI application, configures structured
logging, CORS and error handlers, manages the document store handle for
the application's lifetime, and includes routers for users, reviews and
the watchlist.

Modules:
- FastAPI: Web framework
- CORSMiddleware: Middleware for handling CORS
- gamereviews.database: Document store handle
- gamereviews.errors: Error taxonomy and handlers
- gamereviews.users: Users router
- gamereviews.reviews: Reviews router
- gamereviews.watchlist: Watchlist router
- gamereviews.core: Application settings
"""

from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from gamereviews.core import get_settings
from gamereviews.logging_config import configure_structlog, get_logger
from gamereviews.logging_middleware import init_logging_middleware
from gamereviews.database import Database, connect, get_db
from gamereviews.errors import register_exception_handlers
from gamereviews import crud, reviews, users, watchlist

settings = get_settings()

configure_structlog(settings.LOG_LEVEL, settings.LOG_JSON, settings.LOG_REDACT_EMAILS)
logger = get_logger(__name__)

# Initialize FastAPI application
app = FastAPI(title="Game Reviews API")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_logging_middleware(app)
register_exception_handlers(app)


@app.on_event("startup")
def startup_event():
    """
    FastAPI startup event handler.

    Acquires the document store handle, declares indexes and, when enabled,
    migrates legacy review fields.
    """
    database = connect(settings)
    try:
        database.ensure_indexes()
        if settings.MIGRATE_LEGACY_REVIEWS:
            crud.migrate_legacy_reviews(database)
    except PyMongoError as exc:
        logger.error("database_startup_failed", error=str(exc))
        database.close()
        raise
    app.state.database = database
    logger.info("database_connected", database=settings.DATABASE_NAME)


@app.on_event("shutdown")
def shutdown_event():
    """Release the document store handle."""
    database = getattr(app.state, "database", None)
    if database is not None:
        database.close()
        logger.info("database_closed")


# Include routers for application areas
app.include_router(users.router)
app.include_router(reviews.router)
app.include_router(watchlist.router)


@app.get("/")
def root():
    """
    Root endpoint for the API.

    Returns:
        dict: JSON message confirming the server is running
    """
    return {"msg": "Game Reviews API is running. Visit /docs for Swagger UI"}


@app.get("/health")
def health(db: Database = Depends(get_db)):
    """
    Report whether the document store answers.

    Returns:
        JSONResponse: ``200`` when healthy, ``503`` otherwise
    """
    try:
        healthy = db.ping()
    except PyMongoError as exc:
        logger.warning("health_check_failed", error=str(exc))
        healthy = False
    if healthy:
        return {"status": "healthy", "service": "gamereviews"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unhealthy", "service": "gamereviews"},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
