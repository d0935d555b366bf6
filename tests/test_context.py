import threading

from jobfeed.pipeline.context import QuotaBudget, SeenRegistry


def test_budget_reserve_commit_release():
    b = QuotaBudget(limit=2)
    assert b.reserve() and b.reserve()
    assert not b.reserve()
    b.release()
    assert b.remaining == 1
    b.commit()
    assert b.used == 1
    assert b.remaining == 1


def test_budget_never_negative_and_stays_exhausted():
    b = QuotaBudget(limit=3, used=5)
    assert b.remaining == 0
    assert not b.reserve()

    b = QuotaBudget(limit=10)
    assert b.reserve()
    b.exhaust()
    b.release()
    assert b.remaining == 0
    assert not b.reserve()


def test_unlimited_budget():
    b = QuotaBudget(limit=None)
    assert b.remaining is None
    for _ in range(50):
        assert b.reserve()
        b.commit()
    assert b.used == 50
    assert not b.exhausted


def test_concurrent_reservations_never_exceed_limit():
    b = QuotaBudget(limit=25)
    granted = []
    lock = threading.Lock()

    def grab():
        for _ in range(20):
            if b.reserve():
                b.commit()
                with lock:
                    granted.append(1)

    threads = [threading.Thread(target=grab) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(granted) == 25
    assert b.used == 25
    assert b.remaining == 0


def test_seen_registry_claim():
    seen = SeenRegistry(["a"])
    assert not seen.claim("a")
    assert seen.claim("b")
    assert not seen.claim("b")
    assert seen.claim("")
    assert seen.claim("")
    assert seen.snapshot() == {"a", "b"}
    assert "b" in seen
    assert len(seen) == 2
