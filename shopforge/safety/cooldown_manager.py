"""Cooldown management for per-key action spacing"""

import math
import time
from threading import Lock
from typing import Callable, Dict

from ..utils.logger import get_logger

logger = get_logger(__name__)


class CooldownManager:
    """
    Refuses an action for a key until ``cooldown_seconds`` have passed
    since the last accepted one.

    The check and the record happen under one lock, so two concurrent
    callers for the same key cannot both be accepted. State is
    process-local and lost on restart.
    """

    def __init__(
        self,
        cooldown_seconds: float = 60.0,
        idle_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.idle_seconds = idle_seconds
        self.clock = clock
        self.last_action: Dict[str, float] = {}
        self.lock = Lock()

    def try_acquire(self, key: str) -> bool:
        """Record an action for ``key`` if its cooldown has elapsed"""
        with self.lock:
            now = self.clock()
            last = self.last_action.get(key)
            if last is not None and now - last < self.cooldown_seconds:
                return False
            self.last_action[key] = now
            return True

    def release(self, key: str) -> None:
        """Forget the last action for ``key`` (used when the action itself failed)"""
        with self.lock:
            self.last_action.pop(key, None)

    def seconds_remaining(self, key: str) -> int:
        with self.lock:
            last = self.last_action.get(key)
            if last is None:
                return 0
            remaining = self.cooldown_seconds - (self.clock() - last)
        return max(0, math.ceil(remaining))

    def sweep(self) -> int:
        """Drop entries idle longer than ``idle_seconds``; returns how many were removed"""
        with self.lock:
            now = self.clock()
            stale = [k for k, t in self.last_action.items() if now - t > self.idle_seconds]
            for key in stale:
                del self.last_action[key]
        if stale:
            logger.debug("Cooldown entries swept", removed=len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self.lock:
            return len(self.last_action)
