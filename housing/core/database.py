"""
Database engine and session factory.

Business code never reaches for these directly: a session is opened per request
in housing.api.deps and handed to HousingRepository.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from housing.core.config import settings

Base = declarative_base()

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,  # Check connection before using it
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
