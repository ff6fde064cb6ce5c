"""Logging setup that keeps bot tokens and other secrets out of the logs."""

import logging
import os
from typing import Iterable, Optional, Sequence, Set

_PLACEHOLDER = "[REDACTED]"
_SECRET_MARKERS = ("TOKEN", "SECRET", "KEY", "PASS", "PWD")
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _looks_secret(env_name: str) -> bool:
    name = env_name.upper()
    return any(marker in name for marker in _SECRET_MARKERS)


def collect_secrets(extra_values: Optional[Iterable[Optional[str]]] = None) -> Sequence[str]:
    """Values of secret-looking environment variables plus ``extra_values``."""

    found: Set[str] = {value for key, value in os.environ.items() if value and _looks_secret(key)}
    for value in extra_values or ():
        if isinstance(value, str) and value:
            found.add(value)
    # Longest first so a secret containing another is masked whole.
    return tuple(sorted(found, key=len, reverse=True))


class RedactingFormatter(logging.Formatter):
    """Delegate to ``base`` and mask every known secret in the result."""

    def __init__(self, base: Optional[logging.Formatter] = None, secrets: Optional[Sequence[str]] = None) -> None:
        super().__init__()
        self._base = base or logging.Formatter(DEFAULT_FORMAT)
        self._secrets: Sequence[str] = tuple(secrets or ())

    def update_secrets(self, secrets: Sequence[str]) -> None:
        self._secrets = tuple(secrets)

    def format(self, record: logging.LogRecord) -> str:
        text = self._base.format(record)
        for secret in self._secrets:
            text = text.replace(secret, _PLACEHOLDER)
        return text


def _wrap_handlers(handlers: Iterable[logging.Handler], secrets: Sequence[str]) -> None:
    for handler in handlers:
        if isinstance(handler.formatter, RedactingFormatter):
            handler.formatter.update_secrets(secrets)
        else:
            handler.setFormatter(RedactingFormatter(handler.formatter, secrets))


def configure_logging(
    *,
    level: Optional[str] = None,
    extra_values: Optional[Iterable[Optional[str]]] = None,
) -> None:
    """Configure the root logger and redact secrets from every handler."""

    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=DEFAULT_FORMAT)
    root_logger.setLevel(level)

    secrets = collect_secrets(extra_values)
    _wrap_handlers(root_logger.handlers, secrets)
    for logger_obj in list(logging.Logger.manager.loggerDict.values()):
        if isinstance(logger_obj, logging.Logger):
            _wrap_handlers(logger_obj.handlers, secrets)
