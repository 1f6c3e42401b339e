from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config import settings


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # webhook processing runs outside the request thread
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, future=True)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
