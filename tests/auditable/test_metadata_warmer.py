"""Tests for build-time configuration warming and the warm command."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from packages.auditable.configuration import ConfigurationResolver, artifact_path
from packages.auditable.domain import AuditConfiguration
from packages.auditable.errors import CacheWriteError
from packages.auditable.mapping import qualified_name
from packages.auditable.warmer import MetadataWarmer, main
from tests.auditable.entities import Base, Car, Company, Crate, Order


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Undo the logging configuration applied by the warm command."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_warm_writes_one_artifact_per_audited_class(tmp_path: Path) -> None:
    warmer = MetadataWarmer(tmp_path)

    written = warmer.warm([Order, Company, Crate])

    assert written == [
        artifact_path(tmp_path, qualified_name(Crate)),
        artifact_path(tmp_path, qualified_name(Order)),
    ]
    assert not artifact_path(tmp_path, qualified_name(Company)).exists()

    payload = json.loads(artifact_path(tmp_path, qualified_name(Crate)).read_text(encoding="utf-8"))
    assert payload == {"columns": ["label", "size"], "comment_property": None}


def test_artifact_path_replaces_namespace_separators(tmp_path: Path) -> None:
    assert artifact_path(tmp_path, "shop.models.Order") == tmp_path / "shop" / "models" / "Order.json"


def test_warmed_artifacts_are_read_back_by_resolver(tmp_path: Path) -> None:
    MetadataWarmer(tmp_path).warm_registry(Base.registry)
    resolver = ConfigurationResolver(cache_dir=tmp_path)

    assert resolver.resolve(Car) == AuditConfiguration(columns=frozenset({"name", "wheels"}))
    assert resolver.resolve(Company) == AuditConfiguration()


def test_failed_write_raises_cache_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(CacheWriteError) as exc_info:
        MetadataWarmer(blocker).warm([Order])

    assert exc_info.value.path == artifact_path(blocker, qualified_name(Order))


def test_main_warms_registry_and_prints_summary(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main(
        [
            "tests.auditable.entities:Base",
            "--cache-dir",
            str(tmp_path),
            "--config",
            str(tmp_path / "missing.yaml"),
        ]
    )

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    expected = artifact_path(tmp_path / "auditable" / "sqlalchemy", qualified_name(Order))
    assert str(expected) in summary["written"]
    assert expected.is_file()


def test_main_reports_structured_error_for_non_declarative_target(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    exit_code = main(
        [
            "json:dumps",
            "--cache-dir",
            str(tmp_path),
            "--config",
            str(tmp_path / "missing.yaml"),
        ]
    )

    assert exit_code == 1
    error = json.loads(capsys.readouterr().err.strip().splitlines()[-1])["error"]
    assert error["category"] == "validation"
    assert error["code"] == "INVALID_ARGUMENT"
