import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Load .env file for local development
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent

# Local SQLite file unless ACEPLAN_DATABASE_URL points elsewhere
DATABASE_URL = os.getenv("ACEPLAN_DATABASE_URL", f"sqlite:///{BASE_DIR / 'aceplan.db'}")
LOG_LEVEL = os.getenv("ACEPLAN_LOG_LEVEL", "INFO")

# Base class for database models
Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    # connect_args is only for SQLite
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    """Creates the slots table if it doesn't exist."""
    # Import so the model registers itself on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
