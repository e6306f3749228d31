"""Engine and session factory for the SQL backend."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings


def engine_options(url: str) -> dict:
    """Connection arguments for ``url``: SQLite is shared across request threads, servers get a pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session; closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
