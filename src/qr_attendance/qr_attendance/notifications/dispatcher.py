from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from ..core.exceptions import NotificationClientNotInitialized

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Fire-and-forget execution of gateway calls.

    The caller never waits on delivery; the outcome is only logged.
    """

    def __init__(self, executor: Optional[Executor] = None, *, max_workers: int = 2):
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def dispatch(self, label: str, send: Callable[..., Any], *args: Any, **kwargs: Any) -> Optional[Future]:
        try:
            future = self._executor.submit(self._run, label, send, *args, **kwargs)
        except RuntimeError as exc:
            # executor already shut down
            logger.warning("notification %s not dispatched: %s", label, exc)
            return None
        return future

    @staticmethod
    def _run(label: str, send: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            result = send(*args, **kwargs)
        except NotificationClientNotInitialized:
            logger.info("notification %s skipped: push client not configured", label)
            return None
        except Exception:
            logger.exception("notification %s raised", label)
            return None

        if getattr(result, "success", False):
            logger.info("notification %s delivered", label)
        else:
            logger.warning("notification %s not delivered: %s", label, getattr(result, "error", None))
        return result

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
