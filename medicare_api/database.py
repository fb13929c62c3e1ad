from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from medicare_api.config import get_settings

DATABASE_URL = get_settings().DATABASE_URL

# SQLite needs check_same_thread disabled because FastAPI runs sync endpoints
# in a threadpool. Other backends take no extra connect args.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db():
    """Create missing tables. Called once at application startup."""
    # models must be imported so their tables are registered on Base.metadata
    from medicare_api import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def close_db():
    engine.dispose()


# Dependency for DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
