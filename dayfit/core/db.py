from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from dayfit.core.config import settings

Base = declarative_base()

engine = None
SessionLocal = None

if settings.POSTGRES_DSN:
    engine = create_engine(settings.POSTGRES_DSN, future=True)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    if not engine or not SessionLocal:
        raise HTTPException(503, "DB not configured (POSTGRES_DSN missing)")

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
