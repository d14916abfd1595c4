from recruitsync.sync.backoff import Backoff


class TestBackoff:
    def test_grows_and_caps(self) -> None:
        b = Backoff(base=1.0, cap=5.0)
        assert [b.failure() for _ in range(5)] == [2.0, 4.0, 5.0, 5.0, 5.0]
        assert b.failures == 5

    def test_reset(self) -> None:
        b = Backoff(base=1.0, cap=8.0)
        b.failure()
        b.failure()
        b.reset()
        assert b.failures == 0
        assert b.delay() == 1.0

    def test_freeze_stops_escalation(self) -> None:
        b = Backoff(base=1.0, cap=60.0)
        b.failure()
        b.freeze()
        assert [b.failure() for _ in range(3)] == [2.0, 2.0, 2.0]
        assert b.failures == 4
