import threading

import pytest

from ponzimap.config import Settings
from ponzimap.poller import PollJob, Poller, build_poller


def _job(results, interval=5.0, max_interval=20.0):
    outcomes = iter(results)

    def run():
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return PollJob("sql", run, interval, max_interval)


def test_backoff_grows_and_resets():
    job = _job([False, False, True])
    job.tick(0)
    assert job.current_interval == pytest.approx(7.5)
    assert job.next_run == pytest.approx(7.5)
    job.tick(10)
    assert job.current_interval == pytest.approx(11.25)
    job.tick(30)
    assert job.consecutive_failures == 0
    assert job.next_run == pytest.approx(35.0)


def test_backoff_is_capped():
    job = _job([False] * 10)
    for t in range(10):
        job.tick(t)
    assert job.current_interval == 20.0


def test_raising_job_counts_as_failure():
    job = _job([RuntimeError("boom")])
    assert job.tick(0) is False
    assert job.consecutive_failures == 1


def test_run_pending_only_runs_due_jobs():
    fast = PollJob("sql", lambda: True, 5, 120)
    slow = PollJob("prices", lambda: True, 30, 120)
    poller = Poller([fast, slow])

    assert poller.run_pending(now=0) == ["sql", "prices"]
    assert poller.run_pending(now=4) == []
    assert poller.run_pending(now=5) == ["sql"]
    assert poller.next_due() == 10


def test_run_forever_stops_on_event():
    stop = threading.Event()
    poller = Poller([PollJob("sql", lambda: stop.set() or True, 5, 120)])
    poller.run_forever(stop)
    assert poller.jobs[0].runs == 1


def test_build_poller_uses_settings():
    poller = build_poller(None, None, Settings(sql_poll_seconds=2, price_poll_seconds=9))
    assert [(j.name, j.interval) for j in poller.jobs] == [("sql", 2), ("prices", 9)]
