import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from cloudvps.constants import (
    DEFAULT_DB_DIRECTORY_PROD, DEFAULT_DB_DIRECTORY_DEV, DEFAULT_DB_FILE
)

DB_DIR = os.getenv("CLOUDVPS_DB_DIR", DEFAULT_DB_DIRECTORY_PROD)

# Fallback to local directory if no permissions for /var/lib
try:
    Path(DB_DIR).mkdir(parents=True, exist_ok=True)
except PermissionError:
    DB_DIR = DEFAULT_DB_DIRECTORY_DEV
    Path(DB_DIR).mkdir(parents=True, exist_ok=True)

DB_PATH = Path(DB_DIR) / DEFAULT_DB_FILE
SQLALCHEMY_DATABASE_URL = f"sqlite:///{DB_PATH}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None) -> None:
    """Create tables for all registered models"""
    from cloudvps import models  # noqa: F401  register models with Base
    Base.metadata.create_all(bind=bind or engine)
