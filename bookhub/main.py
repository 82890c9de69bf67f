import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .database import init_db
from .exceptions import BookHubError, StorageError
from .routers import moderation, ratings, submissions

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Book Hub API",
    description="API for submitting, moderating and rating books",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Moderation routes first so /books/pending is not read as a book id
app.include_router(moderation.router)
app.include_router(submissions.router)
app.include_router(ratings.router)


@app.exception_handler(BookHubError)
def handle_book_hub_error(request: Request, exc: BookHubError):
    if isinstance(exc, StorageError):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "Something went wrong!"},
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def on_startup():
    init_db()


@app.get("/health")
def health():
    return {
        "message": "Book Hub API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
