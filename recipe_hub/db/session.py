# db/session.py
# Configures the database connection and session management using SQLAlchemy.

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from recipe_hub.core.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Dependency to get a database session.
# This will be used in our API endpoints to get a session for database operations.
def get_db():
    """
    SQLAlchemy session generator.
    Yields a session and ensures it's closed afterward.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Run a block of writes as one unit of work.
    Commits once at the end, or rolls everything back if the block raises,
    so a half-written recipe (e.g. ingredients without steps) is never visible.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
