"""
Rich logging utility for colored terminal output
"""
import logging
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install as install_traceback
from lead_router.core.config import settings

# Install rich traceback handler for better error display
install_traceback(show_locals=False)

# Create a shared console instance
_console = Console()
_handler: Optional[RichHandler] = None


def _get_handler() -> RichHandler:
    """Build the RichHandler once; every logger writes through it."""
    global _handler
    if _handler is None:
        _handler = RichHandler(
            console=_console,
            show_time=True,
            show_path=True,
            show_level=True,
            rich_tracebacks=True,
            markup=True,  # Enable rich markup in log messages
            log_time_format="[%Y-%m-%d %H:%M:%S]",
        )
        _handler.setFormatter(logging.Formatter(fmt="%(message)s"))
    return _handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance with Rich formatting and colors.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override (defaults to settings.log_level)

    Returns:
        Configured logger instance with RichHandler
    """
    logger = logging.getLogger(name)

    log_level = level.upper() if level else settings.log_level.upper()
    logger.setLevel(getattr(logging, log_level))

    handler = _get_handler()
    if handler not in logger.handlers:
        logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate messages
    logger.propagate = False

    return logger


def route_server_logs(*names: str) -> None:
    """Send the ASGI server's own loggers through the shared Rich handler."""
    for name in names or ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = [_get_handler()]
        server_logger.propagate = False


def get_shared_logger() -> logging.Logger:
    """
    Get a shared application logger for application-wide events
    (startup, shutdown, configuration problems).
    """
    return get_logger("lead_router")


# Create a shared application logger instance
app_logger = get_shared_logger()
