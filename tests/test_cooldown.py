import threading

from shopforge.safety.cooldown_manager import CooldownManager


class Ticker:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


def test_second_acquire_within_window_refused():
    ticker = Ticker()
    cooldown = CooldownManager(cooldown_seconds=60, clock=ticker)

    assert cooldown.try_acquire("9876543210") is True
    ticker.t = 59.5
    assert cooldown.try_acquire("9876543210") is False
    assert cooldown.seconds_remaining("9876543210") == 1
    ticker.t = 60
    assert cooldown.try_acquire("9876543210") is True


def test_release_allows_immediate_retry():
    cooldown = CooldownManager(cooldown_seconds=60, clock=Ticker())
    assert cooldown.try_acquire("k")
    cooldown.release("k")
    assert cooldown.try_acquire("k")
    assert cooldown.seconds_remaining("unknown") == 0


def test_sweep_removes_only_idle_entries():
    ticker = Ticker()
    cooldown = CooldownManager(cooldown_seconds=60, idle_seconds=300, clock=ticker)
    cooldown.try_acquire("old")
    ticker.t = 200
    cooldown.try_acquire("recent")
    ticker.t = 301

    assert cooldown.sweep() == 1
    assert len(cooldown) == 1
    assert cooldown.try_acquire("recent") is True
    assert cooldown.seconds_remaining("old") == 0


def test_concurrent_acquire_admits_exactly_one():
    cooldown = CooldownManager(cooldown_seconds=60)
    barrier = threading.Barrier(20)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        ok = cooldown.try_acquire("9876543210")
        with lock:
            results.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 1
    assert results.count(False) == 19


def test_sweeper_thread_starts_and_stops():
    from web import cooldown_sweeper

    cooldown = CooldownManager()
    cooldown_sweeper.start_cooldown_sweeper(cooldown, interval_seconds=60)
    try:
        assert cooldown_sweeper.is_running()
    finally:
        cooldown_sweeper.stop_cooldown_sweeper()
    assert not cooldown_sweeper.is_running()
