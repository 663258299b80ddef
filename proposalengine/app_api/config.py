from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from proposalengine.core.domain.errors import ValidationError

DEFAULT_PAYMENT_METHODS: tuple[str, ...] = ("boleto", "pix", "credit_card")
DEFAULT_COMMUNICATION_CHANNELS: tuple[str, ...] = ("email", "sms", "whatsapp")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineConfig:
    db_path: str = "proposals.db"
    conflict_retries: int = 0
    payment_methods: tuple[str, ...] = DEFAULT_PAYMENT_METHODS
    communication_channels: tuple[str, ...] = DEFAULT_COMMUNICATION_CHANNELS
    log_level: str = "INFO"

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def _require(payload: dict[str, Any], key: str, expected_type: type, default: Any) -> Any:
    if key not in payload:
        return default
    value = payload[key]
    if expected_type is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValidationError(f"Field '{key}' must be int")
        return value
    if expected_type is tuple:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValidationError(f"Field '{key}' must be a list of strings")
        return tuple(value)
    if not isinstance(value, expected_type):
        raise ValidationError(f"Field '{key}' must be {expected_type.__name__}")
    return value


def config_from_dict(payload: dict[str, Any]) -> EngineConfig:
    if not isinstance(payload, dict):
        raise ValidationError("Engine config must be a JSON object")
    defaults = EngineConfig()

    conflict_retries = _require(payload, "conflict_retries", int, defaults.conflict_retries)
    if conflict_retries < 0:
        raise ValidationError("Field 'conflict_retries' must be >= 0")

    log_level = _require(payload, "log_level", str, defaults.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise ValidationError(f"Field 'log_level' must be one of: {', '.join(LOG_LEVELS)}")

    return EngineConfig(
        db_path=_require(payload, "db_path", str, defaults.db_path),
        conflict_retries=conflict_retries,
        payment_methods=_require(payload, "payment_methods", tuple, defaults.payment_methods),
        communication_channels=_require(
            payload, "communication_channels", tuple, defaults.communication_channels
        ),
        log_level=log_level,
    )


def load_engine_config(path: Optional[str | Path] = None) -> EngineConfig:
    if path is None:
        return EngineConfig()
    config_path = Path(path)
    if not config_path.exists():
        raise ValidationError(f"Config file not found: {config_path}")
    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Config file is not valid JSON: {exc.msg}") from exc
    return config_from_dict(payload)
