"""Logging configuration for vpsie-machine using stdlib logging with rich."""

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

import structlog
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Context keys whose values must never reach a log sink
SECRET_KEYS = frozenset({"password", "client_secret", "secret", "token", "access_token"})

REDACTED = "***"


def redact(key: str, value: Any) -> Any:
    """Mask the value of a secret context key.

    Args:
        key: Context key
        value: Context value

    Returns:
        The value, or ``***`` if the key names a secret
    """
    if key.lower() in SECRET_KEYS and value:
        return REDACTED
    return value


def format_context(msg: Any, context: Mapping[str, Any]) -> Any:
    """Append context data to a message as a visually distinct suffix.

    Args:
        msg: Log message
        context: Context data

    Returns:
        Message with ``[key=value ...]`` appended, or the message unchanged
    """
    if not context:
        return msg
    context_str = " ".join(f"{k}={escape(str(redact(k, v)))}" for k, v in sorted(context.items()))
    return f"{msg} [dim][[/dim]{context_str}[dim]][/dim]"


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that formats kwargs as structured context data.

    Example:
        logger = get_logger(__name__)
        logger.info("Created VPSie VPS", instance_id="abc", ip="198.51.100.7")
        # Output: Created VPSie VPS [instance_id=abc ip=198.51.100.7]
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Process log message and kwargs to extract context data.

        Args:
            msg: Log message
            kwargs: Keyword arguments including context data

        Returns:
            Tuple of (formatted_message, cleaned_kwargs)
        """
        stdlib_kwargs = {"exc_info", "stack_info", "stacklevel", "extra"}

        context = {k: v for k, v in kwargs.items() if k not in stdlib_kwargs}
        clean_kwargs = {k: v for k, v in kwargs.items() if k in stdlib_kwargs}

        return format_context(msg, context), clean_kwargs


def _render_structlog_event(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> str:
    """structlog processor rendering events the same way as the adapter."""
    event = event_dict.pop("event", "")
    return format_context(event, event_dict)


def setup_logging(verbose: bool = False, trace: bool = False) -> None:
    """Configure structured logging with rich integration.

    Both ``get_logger`` adapters and ``structlog`` loggers end up in the same
    rich handler on stderr.

    Args:
        verbose: Enable debug logging
        trace: Also show debug output of httpx and paramiko, with source paths
    """
    log_level = logging.DEBUG if verbose or trace else logging.INFO

    console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=trace,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=trace,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    # httpx logs every request at INFO and paramiko is chatty at DEBUG
    for noisy in ("httpx", "httpcore", "paramiko"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if trace else logging.WARNING)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, _render_structlog_event],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "") -> StructuredLoggerAdapter:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger adapter with structured logging support
    """
    logger = logging.getLogger(name) if name else logging.getLogger(__name__)

    return StructuredLoggerAdapter(logger, {})
