"""Axiom 로깅 설정 모듈.

Axiom logging setup.
Repository loggers are plain ``logging`` loggers; when Axiom credentials are
configured, records are also shipped to the Axiom dataset. Sensitive fields
(password, token, secret) in logged filters and payloads are masked.
"""

import logging
import re
from typing import Any

from axiom_py import Client as AxiomClient
from axiom_py.logging import AxiomHandler

from querystore.config import settings

# 마스킹 대상 필드 패턴 — Fields to mask in logged filters/payloads
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|access_token|refresh_token|credential|cvv)",
    re.IGNORECASE,
)

_ROOT_LOGGER_NAME: str = "querystore"

_configured: bool = False


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if isinstance(k, str) and _SENSITIVE_KEYS.search(k) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


def _truncate(value: Any, max_len: int = 2000) -> Any:
    """로그 크기 제한 — Truncate large values to prevent oversized logs."""
    text = value if isinstance(value, str) else repr(value)
    if len(text) > max_len:
        return text[:max_len] + "...(truncated)"
    return text


def safe_repr(data: Any) -> str:
    """로그용 마스킹 + 길이 제한 문자열 — Masked, size-limited representation for logs."""
    return _truncate(_mask_dict(data))


def configure_logging() -> None:
    """패키지 로거를 한 번만 설정합니다.

    Configure the package logger once: level from settings, plus an
    ``AxiomHandler`` when both ``AXIOM_API_TOKEN`` and ``AXIOM_DATASET`` are set.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(settings.LOG_LEVEL.upper())

    # Axiom 미설정시 표준 핸들러만 사용 — Only stdlib handlers when Axiom is not configured
    if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
        client = AxiomClient(token=settings.AXIOM_API_TOKEN)
        root.addHandler(AxiomHandler(client, settings.AXIOM_DATASET))

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """설정된 패키지 로거의 하위 로거를 반환합니다.

    Return a logger under the ``querystore`` namespace.
    """
    configure_logging()
    if not name.startswith(_ROOT_LOGGER_NAME):
        name = f"{_ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
