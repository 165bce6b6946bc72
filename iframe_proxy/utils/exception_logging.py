"""
Exception logging that never raises, for use at the outermost request boundary.
"""

import logging


def _safe_str(obj) -> str:
    """
    Convert an object to string, surviving broken __str__ and __repr__.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _safe_get_exceptions(exception_group) -> list:
    try:
        return list(exception_group.exceptions)
    except Exception:
        return []


def _describe(exception: BaseException) -> str:
    message = f"{type(exception).__name__}: {_safe_str(exception)}"
    cause = getattr(exception, "cause", None) or exception.__cause__
    if cause is not None and cause is not exception:
        message += f" (caused by {type(cause).__name__}: {_safe_str(cause)})"
    return message


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its cause, expanding exception groups into one entry
    per sub-exception.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Proxy]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        sub_exceptions = (
            _safe_get_exceptions(exception) if hasattr(exception, "exceptions") else []
        )
        if sub_exceptions:
            logger.log(
                level,
                f"{prefix} Exception with {len(sub_exceptions)} sub-exceptions: "
                f"{_safe_str(exception)}",
            )
            for i, sub_exc in enumerate(sub_exceptions):
                logger.log(
                    level,
                    f"{prefix} Sub-exception {i+1}: {_describe(sub_exc)}",
                    exc_info=sub_exc,
                )
        else:
            logger.log(level, f"{prefix} {_describe(exception)}", exc_info=exception)
    except Exception:
        try:
            logger.log(logging.ERROR, f"{prefix} Exception (logging failed)")
        except Exception:
            # Logging itself is broken; nothing left to report to.
            pass
