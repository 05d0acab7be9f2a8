"""Background loop that drops idle OTP cooldown entries."""

import threading

from shopforge.safety.cooldown_manager import CooldownManager
from shopforge.utils.logger import get_logger

logger = get_logger(__name__)
_stop = threading.Event()
_thread: threading.Thread | None = None


def _loop(cooldown: CooldownManager, interval_seconds: int = 60):
    while not _stop.wait(interval_seconds):
        try:
            removed = cooldown.sweep()
            if removed:
                logger.info("Cooldown sweep", removed=removed, remaining=len(cooldown))
        except Exception as e:
            logger.warning("Cooldown sweep error", error=str(e))


def start_cooldown_sweeper(cooldown: CooldownManager, interval_seconds: int = 60) -> None:
    global _thread
    if _thread is not None:
        return
    _stop.clear()
    _thread = threading.Thread(
        target=_loop,
        args=(cooldown, interval_seconds),
        daemon=True,
        name="cooldown-sweeper",
    )
    _thread.start()
    logger.info("Cooldown sweeper started", interval_seconds=interval_seconds)


def stop_cooldown_sweeper() -> None:
    global _thread
    _stop.set()
    if _thread is not None:
        _thread.join(timeout=2)
        if _thread.is_alive():
            logger.warning("Cooldown sweeper thread still alive after timeout, continuing shutdown")
        _thread = None
    logger.info("Cooldown sweeper stopped")


def is_running() -> bool:
    return _thread is not None and _thread.is_alive()
