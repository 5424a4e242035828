"""
Setup logging for the application.
"""

import contextvars
import logging

trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "trace_id", default=None
)


def add_trace_id(record: logging.LogRecord) -> bool:
    """
    Add the current request trace id to the log record.
    """
    record.trace_id = trace_id_var.get() or "-"
    return True


def setup_logging(level: int = logging.DEBUG):
    """
    Setup logging for the application.
    """
    # make logging to log DEBUG in blue, warning in yellow, error in red
    logging.addLevelName(logging.DEBUG, "\033[94mDEBUG\033[0m")
    logging.addLevelName(logging.WARNING, "\033[93mWARNING\033[0m")
    logging.addLevelName(logging.ERROR, "\033[91mERROR\033[0m")
    logging.basicConfig(
        format="\033[94m[%(levelname)s\t]\033[0m \033[92m[%(name)24s]\033[0m [%(trace_id)s] %(message)s",
        level=level,
    )
    ALLOWED_NAME_PREFIX = ["wiki.", "tests."]
    for handler in logging.root.handlers:
        handler.addFilter(add_trace_id)
        handler.addFilter(
            lambda record: any(
                record.name.startswith(prefix) for prefix in ALLOWED_NAME_PREFIX
            )
        )
