"""Structured JSON logging with run context."""
import logging
import sys
from typing import Any, MutableMapping, TextIO

from pythonjsonlogger import jsonlogger

from workflow_timer.config import get_settings


class RunContextFilter(logging.Filter):
    """Add run context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default run context fields if not present."""
        if not hasattr(record, "run_id"):
            record.run_id = None
        if not hasattr(record, "workflow_node"):
            record.workflow_node = None
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # Drop empty context so plain library logs stay short
        for key in ("run_id", "workflow_node"):
            if not log_record.get(key):
                log_record.pop(key, None)


class ContextLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call `extra` over the adapter's own."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def setup_logging(stream: TextIO | None = None) -> None:
    """
    Configure logging for the application.

    Args:
        stream: Where records go; stdout when omitted
    """
    settings = get_settings()

    handler = logging.StreamHandler(stream or sys.stdout)

    if settings.log_format == "json":
        formatter: logging.Formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    handler.setFormatter(formatter)

    handler.addFilter(RunContextFilter())

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> ContextLoggerAdapter:
    """
    Get a logger with run context support.

    Args:
        name: Logger name (typically __name__)

    Returns:
        LoggerAdapter that accepts run context in its extra dict
    """
    logger = logging.getLogger(name)
    return ContextLoggerAdapter(logger, extra={})


def with_run_context(
    run_id: str | None = None,
    workflow_node: str | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create extra dict with run context.

    Args:
        run_id: Run ID
        workflow_node: Node the record is about
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if run_id:
        extra["run_id"] = run_id
    if workflow_node:
        extra["workflow_node"] = workflow_node
    return extra
