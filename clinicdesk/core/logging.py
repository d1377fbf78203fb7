"""Logging setup and the staff audit trail."""

import logging
import sys
from typing import Any

from clinicdesk.core.config import settings

DEV_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class StructuredFormatter(logging.Formatter):
    """Single-line ``key=value`` records for log shippers.

    Values containing whitespace are double-quoted. Context passed through
    ``extra`` is emitted only for the fields listed in ``EXTRA_FIELDS``.
    """

    EXTRA_FIELDS = ("clinic_id", "user_id", "appointment_id", "action")

    @staticmethod
    def _quote(value: Any) -> str:
        text = str(value)
        if not text or any(c.isspace() for c in text):
            return '"' + text.replace('"', '\\"') + '"'
        return text

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                fields[name] = value

        line = " ".join(f"{k}={self._quote(v)}" for k, v in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> None:
    """Install a single stdout handler on the root logger.

    Dev gets a human readable format; every other environment gets
    :class:`StructuredFormatter`.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(DEV_FORMAT) if settings.is_dev else StructuredFormatter()
    )
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class AuditLogger:
    """Records who changed what in a clinic."""

    def __init__(self) -> None:
        self.logger = get_logger("clinicdesk.audit")

    def log(
        self,
        action: str,
        actor_id: str,
        clinic_id: str | None,
        entity_type: str,
        entity_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        details = " ".join(f"{k}={v}" for k, v in sorted((metadata or {}).items()))
        self.logger.info(
            f"{action} by {actor_id} on {entity_type}:{entity_id}"
            + (f" ({details})" if details else ""),
            extra={"action": action, "user_id": actor_id, "clinic_id": clinic_id},
        )


audit_logger = AuditLogger()
