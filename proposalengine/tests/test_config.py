"""Tests for engine config loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from proposalengine.app_api.config import (
    DEFAULT_COMMUNICATION_CHANNELS,
    DEFAULT_PAYMENT_METHODS,
    EngineConfig,
    config_from_dict,
    load_engine_config,
)
from proposalengine.core.domain.errors import ValidationError


def test_defaults_without_file() -> None:
    cfg = load_engine_config(None)

    assert cfg == EngineConfig()
    assert cfg.payment_methods == DEFAULT_PAYMENT_METHODS
    assert cfg.communication_channels == DEFAULT_COMMUNICATION_CHANNELS
    assert cfg.logging_level == logging.INFO


def test_load_from_file(tmp_path: Path) -> None:
    path = tmp_path / "engine.json"
    path.write_text(
        json.dumps(
            {
                "db_path": "x.db",
                "conflict_retries": 2,
                "payment_methods": ["pix"],
                "communication_channels": ["email"],
                "log_level": "debug",
            }
        ),
        encoding="utf-8",
    )

    cfg = load_engine_config(path)

    assert cfg.db_path == "x.db"
    assert cfg.conflict_retries == 2
    assert cfg.payment_methods == ("pix",)
    assert cfg.communication_channels == ("email",)
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "payload",
    [
        {"conflict_retries": -1},
        {"conflict_retries": True},
        {"payment_methods": "pix"},
        {"payment_methods": [1]},
        {"log_level": "LOUD"},
        {"db_path": 3},
    ],
)
def test_invalid_fields_rejected(payload: dict) -> None:
    with pytest.raises(ValidationError):
        config_from_dict(payload)


def test_missing_file_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_engine_config(tmp_path / "nope.json")
