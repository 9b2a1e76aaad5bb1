import logging
import threading
from concurrent.futures import Executor, Future
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ModelStore(Generic[T]):
    """
    Process-lifetime cache of trained models keyed by context.

    `get_or_create` builds a missing model at most once per key: callers
    racing on the same key wait on a per-key lock while the first one trains.
    With an `executor`, builds run in the background instead and callers get
    None until the model is ready.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self._executor = executor
        self._models: Dict[Hashable, T] = {}
        self._pending: Dict[Hashable, Future] = {}
        self._locks: Dict[Hashable, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Hashable) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def get(self, key: Hashable) -> Optional[T]:
        model = self._models.get(key)
        if model is None and key in self._pending:
            with self._lock_for(key):
                self._collect(key)
                model = self._models.get(key)
        return model

    def get_or_create(self, key: Hashable, build: Callable[[], T]) -> Optional[T]:
        model = self._models.get(key)
        if model is not None:
            return model

        with self._lock_for(key):
            model = self._models.get(key)
            if model is not None:
                return model

            if self._executor is None:
                model = build()
                self._models[key] = model
                return model

            if key not in self._pending:
                logger.info(f"Scheduling background training for {key}")
                self._pending[key] = self._executor.submit(build)
            self._collect(key)
            return self._models.get(key)

    def _collect(self, key: Hashable) -> None:
        # Caller holds the key lock
        future = self._pending.get(key)
        if future is None or not future.done():
            return
        del self._pending[key]
        error = future.exception()
        if error is not None:
            logger.error(f"Background training for {key} failed: {error}")
            return
        self._models[key] = future.result()
        logger.info(f"Background training for {key} finished")

    def invalidate(self, key: Hashable) -> None:
        with self._lock_for(key):
            self._models.pop(key, None)
            future = self._pending.pop(key, None)
            if future is not None:
                future.cancel()

    def clear(self) -> None:
        with self._guard:
            keys = list(set(self._models) | set(self._pending))
        for key in keys:
            self.invalidate(key)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._models
