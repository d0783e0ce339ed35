"""
Диспетчер апдейтов с сериализацией по пользователю.

У каждого пользователя своя FIFO-очередь, которую в каждый момент
разбирает не больше одного потока пула. События одного пользователя
применяются в порядке доставки, разные пользователи не ждут друг друга.
"""
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Hashable

from shelfbot.logging import logger


class UserDispatcher:
    def __init__(self, max_workers: int = 8):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dispatch")
        self._lock = threading.Lock()
        # Очередь есть в словаре, пока её кто-то разбирает
        self._queues: dict[Hashable, deque] = {}

    def submit(self, key: Hashable, fn: Callable[..., Any], *args: Any) -> None:
        with self._lock:
            queue = self._queues.get(key)
            if queue is not None:
                queue.append((fn, args))
                return
            self._queues[key] = deque([(fn, args)])
        self._executor.submit(self._drain, key)

    def _drain(self, key: Hashable) -> None:
        while True:
            with self._lock:
                queue = self._queues[key]
                if not queue:
                    del self._queues[key]
                    return
                fn, args = queue.popleft()
            try:
                fn(*args)
            except Exception:
                # Сбой одного события не должен останавливать очередь
                logger.exception("Unhandled error while processing update for %s", key)

    def shutdown(self, wait: bool = True) -> None:
        """Дождаться разбора всех очередей и остановить пул."""
        self._executor.shutdown(wait=wait)
