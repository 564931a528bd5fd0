from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from taskhub.config.settings import settings

engine = create_engine(settings.DATABASE_URL, **settings.engine_options())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_session_factory() -> sessionmaker:
    """Session factory used by requests; overridden in tests"""
    return SessionLocal


# This is required to be imported wherever DB session is needed
def get_db(session_factory: sessionmaker = Depends(get_session_factory)):
    db: Session = session_factory()
    try:
        yield db
    finally:
        db.close()
