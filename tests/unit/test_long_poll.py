import threading
import time

from domains.raw_conversion.watchers.polling import WatchQueue


def test_long_poll_returns_queued_event():
    watch_queue = WatchQueue(min_delay=0.01, max_delay=0.05, step=0.01)
    watch_queue.put("1535.lock")

    assert watch_queue.long_poll() == "1535.lock"


def test_long_poll_returns_none_once_closed():
    watch_queue = WatchQueue(min_delay=0.01, max_delay=0.05, step=0.01)
    watch_queue.put("dropped")
    watch_queue.close()
    watch_queue.close()

    assert watch_queue.closed
    assert watch_queue.long_poll() is None


def test_events_after_close_are_dropped():
    watch_queue = WatchQueue(min_delay=0.01, max_delay=0.05, step=0.01)
    watch_queue.close()
    watch_queue.put("late")

    assert watch_queue.long_poll() is None


def test_long_poll_waits_for_event_from_other_thread():
    watch_queue = WatchQueue(min_delay=0.01, max_delay=0.05, step=0.01)
    timer = threading.Timer(0.2, watch_queue.put, args=("1535.lock",))
    timer.start()

    started = time.monotonic()
    result = watch_queue.long_poll()

    assert result == "1535.lock"
    assert time.monotonic() - started >= 0.15


def test_close_unblocks_waiting_poller():
    watch_queue = WatchQueue(min_delay=0.1, max_delay=0.5, step=0.1)
    results = []
    poller = threading.Thread(target=lambda: results.append(watch_queue.long_poll()))
    poller.start()

    time.sleep(0.3)
    watch_queue.close()
    poller.join(timeout=2.0)

    assert not poller.is_alive()
    assert results == [None]


def test_initial_delay_is_randomized_within_bounds():
    watch_queue = WatchQueue(min_delay=0.1, max_delay=0.5, step=0.1)

    for _ in range(20):
        assert 0.1 <= watch_queue.initial_delay() <= 0.2
