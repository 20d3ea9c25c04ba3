# backend/tests/conftest.py
"""
Pytest configuration for the scheduling core.

Every test gets a fresh in-memory SQLite database with the full schema.
The application's own engine is never touched: routes are exercised
through ``dependency_overrides`` on ``get_db``.
"""

import os

# Set testing mode BEFORE any studio_core imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from studio_core.database import Base
from studio_core.init_db import init_db
from studio_core.services.base import BaseService


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(autouse=True)
def reset_service_metrics() -> Generator[None, None, None]:
    yield
    BaseService._class_metrics.clear()
