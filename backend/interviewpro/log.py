"""
Logging setup for the gateway.

All output goes through one stream handler whose formatter scrubs API keys,
including keys that show up inside tracebacks.
"""
import logging
import sys
import threading

from .errors import mask_secret


class SecretScrubbingFormatter(logging.Formatter):
    def __init__(self, fmt=None, datefmt=None, secrets=()):
        super().__init__(fmt, datefmt)
        self.secrets = tuple(s for s in secrets if s)

    def format(self, record: logging.LogRecord) -> str:
        return mask_secret(super().format(record), self.secrets)


def setup_logging(level: str = "INFO", secrets=()) -> logging.Logger:
    """
    Configure the root logger with a single scrubbing stream handler.

    Args:
        level: Log level name, unknown names fall back to INFO
        secrets: Literal secrets to redact besides ``sk-`` style keys

    Returns:
        The ``interviewpro`` logger
    """
    lvl = getattr(logging, str(level).strip().upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setLevel(lvl)
    handler.setFormatter(SecretScrubbingFormatter("%(asctime)s %(levelname)s %(name)s - %(message)s", secrets=secrets))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(lvl)
    root_logger.addHandler(handler)

    return logging.getLogger("interviewpro")


def install_exception_hooks() -> None:
    """Log otherwise-uncaught exceptions instead of letting them end the process silently."""
    logger = logging.getLogger("interviewpro.uncaught")

    def _excepthook(exc_type, exc, tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logger.critical("UNCAUGHT EXCEPTION (keeping server alive)", exc_info=(exc_type, exc, tb))

    def _thread_excepthook(args):
        logger.critical(
            "UNCAUGHT EXCEPTION in thread %s (keeping server alive)",
            args.thread.name if args.thread else "?",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
