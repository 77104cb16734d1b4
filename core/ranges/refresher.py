# rangeblock/core/ranges/refresher.py
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from schemas.ranges import FilterSelector, RefreshStatus
from utils.exceptions import FetchError
from .fetcher import RangeFetcher, NotModified
from .snapshot import build_snapshot
from .table import RangeTable

logger = logging.getLogger(f"rangeblock.{__name__}")

DEFAULT_REFRESH_INTERVAL = 60.0  # seconds


class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    UPDATING = "updating"
    SKIPPING = "skipping"
    STOPPED = "stopped"


class RangeRefresher:
    """
    Background loop that keeps a RangeTable in sync with the remote range list.

    Each cycle fetches with the last known validator, then either publishes a
    new snapshot, keeps the current one (not modified), or logs the failure and
    keeps the current one. The first cycle runs as soon as the loop starts;
    later ones run every `interval` seconds until the stop event is set.
    The refresher is the table's only writer.
    """
    def __init__(self,
                 table: RangeTable,
                 fetcher: RangeFetcher,
                 selector: Optional[FilterSelector] = None,
                 interval: float = DEFAULT_REFRESH_INTERVAL):
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")
        self.table = table
        self.fetcher = fetcher
        self.selector = selector or FilterSelector()
        self.interval = interval

        self._validator: str = ""
        self._state = RefreshState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._status_lock = threading.Lock()

        self._cycles = 0
        self._failures = 0
        self._last_success_at: Optional[datetime] = None
        self._last_failure_at: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def validator(self) -> str:
        return self._validator

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> RefreshState:
        """
        Run a single refresh cycle.
        Returns the state the cycle ended in before going back to idle:
        UPDATING, SKIPPING, or IDLE when the fetch failed.
        """
        self._state = RefreshState.FETCHING
        outcome = RefreshState.IDLE
        try:
            result = self.fetcher.fetch(self._validator)
        except FetchError as e:
            logger.warning(f"Range refresh failed, keeping {len(self.table)} current ranges: {e}")
            self._record(error=str(e))
            self._state = RefreshState.IDLE
            return outcome

        if isinstance(result, NotModified):
            self._state = RefreshState.SKIPPING
            if result.validator and result.validator != self._validator:
                logger.debug(f"Validator updated on not-modified response: {self._validator} -> {result.validator}")
                self._validator = result.validator
            outcome = RefreshState.SKIPPING
        else:
            self._state = RefreshState.UPDATING
            snapshot = build_snapshot(result.document, self.selector)
            self.table.replace(snapshot)
            self._validator = result.validator
            outcome = RefreshState.UPDATING

        self._record()
        self._state = RefreshState.IDLE
        return outcome

    def _record(self, error: Optional[str] = None):
        now = datetime.now(timezone.utc)
        with self._status_lock:
            self._cycles += 1
            if error is None:
                self._last_success_at = now
            else:
                self._failures += 1
                self._last_failure_at = now
                self._last_error = error

    def _loop(self):
        logger.info(f"Range refresher started (interval: {self.interval}s, url: {self.fetcher.url}, "
                    f"region: '{self.selector.region}', service: '{self.selector.service}')")
        try:
            while True:
                try:
                    self.run_once()
                except Exception as e:
                    self._state = RefreshState.IDLE
                    logger.error(f"Unexpected error in range refresh cycle: {e}", exc_info=True)
                if self._stop_event.wait(self.interval):
                    break
        finally:
            self._state = RefreshState.STOPPED
            logger.info("Range refresher stopped.")

    def start(self, stop_event: Optional[threading.Event] = None):
        """
        Start the loop in a daemon thread.

        Args:
            stop_event: Cancellation token. Setting it ends the loop after the
                current cycle. A private event is used when omitted.
        """
        if self.is_running():
            logger.info("Range refresher already running.")
            return
        if stop_event is not None:
            self._stop_event = stop_event
        else:
            self._stop_event = threading.Event()
        self._state = RefreshState.IDLE
        self._thread = threading.Thread(target=self._loop, name="RangeRefresher", daemon=True)
        self._thread.start()

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Signal the loop to stop. An in-flight fetch is not interrupted.
        Returns True if the loop is no longer running.
        """
        self._stop_event.set()
        if wait:
            self.join(timeout)
        return not self.is_running()

    def join(self, timeout: Optional[float] = None):
        if self._thread is not None:
            self._thread.join(timeout)

    def status(self) -> RefreshStatus:
        snapshot = self.table.current
        with self._status_lock:
            return RefreshStatus(
                state=self._state.value,
                running=self.is_running(),
                validator=self._validator or None,
                range_count=len(snapshot),
                sync_token=snapshot.sync_token,
                create_date=snapshot.create_date,
                cycles=self._cycles,
                failures=self._failures,
                last_success_at=self._last_success_at,
                last_failure_at=self._last_failure_at,
                last_error=self._last_error,
            )
