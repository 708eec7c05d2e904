"""Unit tests for the reader/writer lock."""

import threading
import time

from ratecount.utils.rwlock import ReadWriteLock


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(3, timeout=2)

    def _reader() -> None:
        with lock.read():
            # All three readers must be inside at once to pass the barrier
            inside.wait()

    threads = [threading.Thread(target=_reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=3)

    assert not any(t.is_alive() for t in threads)
    assert inside.broken is False


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    writer_in = threading.Event()

    def _writer() -> None:
        with lock.write():
            writer_in.set()
            events.append("write-start")
            time.sleep(0.05)
            events.append("write-end")

    def _reader() -> None:
        writer_in.wait(timeout=1)
        with lock.read():
            events.append("read")

    w = threading.Thread(target=_writer)
    r = threading.Thread(target=_reader)
    w.start()
    r.start()
    w.join()
    r.join()

    assert events == ["write-start", "write-end", "read"]


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    first_reader_in = threading.Event()
    release_first_reader = threading.Event()

    def _first_reader() -> None:
        with lock.read():
            first_reader_in.set()
            release_first_reader.wait(timeout=1)
            events.append("read-1")

    def _writer() -> None:
        with lock.write():
            events.append("write")

    def _late_reader() -> None:
        with lock.read():
            events.append("read-2")

    t1 = threading.Thread(target=_first_reader)
    t1.start()
    first_reader_in.wait(timeout=1)

    tw = threading.Thread(target=_writer)
    tw.start()
    time.sleep(0.05)
    t2 = threading.Thread(target=_late_reader)
    t2.start()
    time.sleep(0.05)

    release_first_reader.set()
    for t in (t1, tw, t2):
        t.join(timeout=2)

    assert events == ["read-1", "write", "read-2"]


def test_lock_is_released_when_block_raises() -> None:
    lock = ReadWriteLock()

    try:
        with lock.write():
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    acquired = threading.Event()

    def _reader() -> None:
        with lock.read():
            acquired.set()

    t = threading.Thread(target=_reader)
    t.start()
    t.join(timeout=1)
    assert acquired.is_set()
