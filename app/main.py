"""Main FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from app.config import BACKEND_SQL, settings
from app.database import engine, Base
from app.api.routes import router
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError
# Import models to register them with SQLAlchemy Base
from app.models.domain import Account, Issue, Comment, Notification  # noqa: F401

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.LOG_FORMAT)


_configure_logging()

# Create database tables
if settings.ISSUE_BACKEND == BACKEND_SQL:
    Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title="Campus Issue Tracker",
    description="Report, triage and resolve campus facility and safety issues.",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY, max_age=settings.SESSION_MAX_AGE)

# Include API routes
app.include_router(router, prefix="/api", tags=["Issues"])


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def handle_validation(request: Request, exc: ValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": exc.message})


@app.exception_handler(PermissionDeniedError)
async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": exc.message})


# Health check
@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "Campus Issue Tracker", "backend": settings.ISSUE_BACKEND}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
