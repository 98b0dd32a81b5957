"""Pytest configuration for the auditable test suite."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.auditable.models import AuditBase  # noqa: E402
from packages.auditable.runtime import AuditRuntime  # noqa: E402
from packages.auditable_shared.config import AuditableSettings  # noqa: E402
from tests.auditable.entities import Base  # noqa: E402


@pytest.fixture()
def sqlite_session_factory() -> Generator[sessionmaker, None, None]:
    """Provide a session factory over an in-memory sqlite database."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    AuditBase.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture()
def audit_runtime(
    sqlite_session_factory: sessionmaker,
    tmp_path: Path,
) -> AuditRuntime:
    """Attach a fresh audit runtime to the sqlite session factory."""
    settings = AuditableSettings(audit={"cache_dir": tmp_path / "cache"})
    runtime = AuditRuntime.from_settings(settings)
    runtime.install(sqlite_session_factory)
    return runtime
