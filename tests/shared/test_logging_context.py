"""Tests for structured logging configuration and entity context propagation."""

from __future__ import annotations

import json
import logging
from typing import Iterator

import pytest

from packages.auditable_shared.logging import (
    configure_logging,
    get_context,
    get_logger,
    log_context,
)


@pytest.fixture(autouse=True)
def _isolated_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _last_json_line(capsys: pytest.CaptureFixture[str]) -> dict[str, object]:
    return json.loads(capsys.readouterr().out.strip().splitlines()[-1])


def test_nested_log_context_layers_and_restores_values() -> None:
    with log_context({"entity_class": "shop.Order"}):
        with log_context({"entity_id": 7, "username": None}):
            assert get_context() == {"entity_class": "shop.Order", "entity_id": 7}
        assert get_context() == {"entity_class": "shop.Order"}

    assert get_context() == {}


def test_json_output_promotes_entity_fields(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="DEBUG", json_output=True, service="auditable", environment="test")
    logger = get_logger("auditable.test")

    with log_context({"entity_class": "shop.Order", "entity_id": "7", "entry_count": 2}):
        logger.debug("Created audit group")

    payload = _last_json_line(capsys)
    assert payload["message"] == "Created audit group"
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "auditable.test"
    assert payload["entity_class"] == "shop.Order"
    assert payload["entity_id"] == "7"
    assert payload["entry_count"] == 2
    assert payload["username"] is None
    assert payload["context"] == {"service": "auditable", "environment": "test"}


def test_json_output_always_carries_entity_keys(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(level="INFO", json_output=True)

    get_logger("auditable.test").info("Wrote audit configuration")

    payload = _last_json_line(capsys)
    assert {key: payload[key] for key in ("entity_class", "entity_id", "entry_count", "username")} == {
        "entity_class": None,
        "entity_id": None,
        "entry_count": None,
        "username": None,
    }
    assert "context" not in payload


def test_plain_output_tags_entity_and_appends_sorted_fields(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", json_output=False)
    logger = get_logger("auditable.test")

    with log_context(
        {"entity_id": "7", "entity_class": "shop.Order", "username": "alice", "config_source": "metadata"}
    ):
        logger.info("Created audit group")
    logger.debug("hidden")

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert lines[0].endswith(
        "Created audit group [shop.Order#7] config_source=metadata username=alice"
    )


def test_process_fields_do_not_leak_into_context() -> None:
    configure_logging(service="auditable", environment="test")

    assert get_context() == {}


def test_repeated_configuration_keeps_single_handler() -> None:
    configure_logging()
    configure_logging()

    assert len(logging.getLogger().handlers) == 1
