"""Operational safety helpers for request handling and config validation."""

from __future__ import annotations

import logging
import re
from typing import Any

from apps.api.app.core.config import Settings

_REDACTED = "***REDACTED***"
_SENSITIVE_KEYS = {"access_token", "authorization", "token", "secret", "password", "cookie"}
_DISPLAY_PATTERN = re.compile(r"^:\d+$")
_SCREEN_PATTERN = re.compile(r"^\d+x\d+x\d+$")


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    normalized = key_lower.replace("-", "_")
    return (
        normalized in _SENSITIVE_KEYS
        or normalized.endswith("_key")
        or normalized.endswith("_token")
        or "authorization" in normalized
    )


def redact_sensitive_fields(value: Any) -> Any:
    if isinstance(value, dict):
        redacted: dict[str, Any] = {}
        for key, nested in value.items():
            if _is_sensitive_key(key):
                redacted[key] = _REDACTED
            else:
                redacted[key] = redact_sensitive_fields(nested)
        return redacted
    if isinstance(value, list):
        return [redact_sensitive_fields(item) for item in value]
    return value


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def validate_runtime_configuration(settings: Settings) -> None:
    if settings.request_rate_limit_window_seconds <= 0:
        raise ValueError("Invalid runtime configuration: rate limit window must be > 0")
    if settings.request_rate_limit_max_requests <= 0:
        raise ValueError("Invalid runtime configuration: rate limit max requests must be > 0")
    if not settings.auth_graph_base_url.startswith(("http://", "https://")):
        raise ValueError("Invalid runtime configuration: graph base url must be http(s)")
    if settings.auth_graph_timeout_seconds <= 0:
        raise ValueError("Invalid runtime configuration: graph timeout must be > 0")
    if not _DISPLAY_PATTERN.match(settings.virtual_display):
        raise ValueError(
            "Invalid runtime configuration: virtual display must look like ':99'"
        )
    if not _SCREEN_PATTERN.match(settings.virtual_display_screen):
        raise ValueError(
            "Invalid runtime configuration: virtual display screen must look like '1024x768x24'"
        )
    if settings.conversion_max_bytes <= 0:
        raise ValueError("Invalid runtime configuration: conversion max bytes must be > 0")

    if settings.runtime_environment == "production":
        if settings.auth_accept_unsigned_tokens:
            raise ValueError(
                "Invalid runtime configuration: unsigned tokens cannot be accepted in production"
            )
        if settings.database_url.startswith("sqlite") and not settings.allow_sqlite_transitional:
            raise ValueError(
                "Invalid runtime configuration: sqlite database requires "
                "allow_sqlite_transitional in production"
            )
