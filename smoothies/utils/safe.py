"""Graceful-degradation helpers shared by parsers, providers and the cache store.

Consolidates the try/except/log pattern for optional operations whose failure
must never reach the caller: a lower-fidelity result (or an empty one) is
returned instead.
"""

from smoothies.utils.logger import logger


def _log_error(operation_name: str, exception: Exception, log_level: str = "warning") -> None:
    """Log error with appropriate level.

    Args:
        operation_name: Description for logging
        exception: Exception that occurred
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
    """
    msg = f"{operation_name}: {exception}"
    if log_level == "debug":
        logger.debug(msg)
    elif log_level == "error":
        logger.error(msg)
    else:
        logger.warning(msg)


async def safe_execute_async(
    coro,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
):
    """Safely execute async operation with consistent error logging.

    Typical uses:
    - Provider search: an HTTP error or timeout counts as zero results
    - Cache file read: a missing or corrupt file counts as zero entries
    - Cache persist: a failed write leaves the in-memory index authoritative

    Args:
        coro: Awaitable coroutine to execute.
        operation_name: Description for logging (e.g., "Pexels search").
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.

    Returns:
        Result of coroutine if successful, default_return on exception.
    """
    try:
        return await coro
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return default_return


def safe_execute_sync(
    func,
    operation_name: str,
    log_level: str = "warning",
    default_return=None,
):
    """Safely execute sync operation with consistent error logging.

    Synchronous version of safe_execute_async, used by the loose CSV cell
    parsers where each strategy may fail and the next one takes over.

    Args:
        func: Callable to execute (no args).
        operation_name: Description for logging.
        log_level: Logging level ("debug", "warning", "error"). Default: "warning".
        default_return: Value to return on exception. Default: None.

    Returns:
        Result of func if successful, default_return on exception.
    """
    try:
        return func()
    except Exception as e:
        _log_error(operation_name, e, log_level)
        return default_return
