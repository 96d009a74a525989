from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ponzimap.config import Settings
from ponzimap.feeds.torii import ToriiClient, refresh_prices, refresh_sql

log = logging.getLogger(__name__)

BACKOFF_MULTIPLIER = 1.5


@dataclass
class PollJob:
    name: str
    run: Callable[[], bool]
    interval: float
    max_interval: float
    backoff: float = BACKOFF_MULTIPLIER
    next_run: float = 0.0
    consecutive_failures: int = 0
    runs: int = 0

    @property
    def current_interval(self) -> float:
        if not self.consecutive_failures:
            return self.interval
        return min(self.interval * self.backoff ** self.consecutive_failures, self.max_interval)

    def tick(self, now: float) -> bool:
        self.runs += 1
        try:
            ok = bool(self.run())
        except Exception:
            # a broken tick must not kill the loop; the next one retries
            log.exception("poll job %s raised", self.name)
            ok = False

        if ok:
            self.consecutive_failures = 0
        else:
            self.consecutive_failures += 1
            log.warning("poll job %s failed %d times in a row, next try in %.1fs",
                        self.name, self.consecutive_failures, self.current_interval)
        self.next_run = now + self.current_interval
        return ok


class Poller:
    def __init__(self, jobs: List[PollJob]):
        self.jobs = jobs

    def run_pending(self, now: Optional[float] = None) -> List[str]:
        now = time.time() if now is None else now
        ran = []
        for job in self.jobs:
            if now >= job.next_run:
                job.tick(now)
                ran.append(job.name)
        return ran

    def next_due(self) -> float:
        return min((job.next_run for job in self.jobs), default=time.time())

    def run_forever(self, stop: threading.Event) -> None:
        log.info("poller started: %s", ", ".join(f"{j.name}/{j.interval:g}s" for j in self.jobs))
        while not stop.is_set():
            self.run_pending()
            stop.wait(max(0.1, self.next_due() - time.time()))
        log.info("poller stopped")


def build_poller(session, client: ToriiClient, settings: Settings) -> Poller:
    return Poller([
        PollJob("sql", lambda: refresh_sql(session, client),
                settings.sql_poll_seconds, settings.max_poll_seconds),
        PollJob("prices", lambda: refresh_prices(session, client),
                settings.price_poll_seconds, settings.max_poll_seconds),
    ])


def start_background(poller: Poller) -> Tuple[threading.Thread, threading.Event]:
    stop = threading.Event()
    thread = threading.Thread(target=poller.run_forever, args=(stop,), name="ponzimap-poller", daemon=True)
    thread.start()
    return thread, stop
