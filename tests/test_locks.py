import threading
import time

from bookhub.locks import SubmissionLocks


def test_same_id_is_serialized():
    locks = SubmissionLocks()
    inside = []
    overlaps = []

    def worker():
        with locks.hold("book-1"):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []
    assert len(locks) == 0


def test_different_ids_do_not_block():
    locks = SubmissionLocks()
    entered = threading.Event()

    with locks.hold("book-1"):

        def other():
            with locks.hold("book-2"):
                entered.set()

        t = threading.Thread(target=other)
        t.start()
        assert entered.wait(timeout=2)
        t.join()


def test_released_on_exception():
    locks = SubmissionLocks()
    try:
        with locks.hold("book-1"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    acquired = threading.Event()

    def other():
        with locks.hold("book-1"):
            acquired.set()

    t = threading.Thread(target=other)
    t.start()
    assert acquired.wait(timeout=2)
    t.join()
    assert len(locks) == 0
