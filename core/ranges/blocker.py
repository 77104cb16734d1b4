# rangeblock/core/ranges/blocker.py
import logging
import threading
from typing import Callable, Optional, Union

import requests
from fastapi import FastAPI

from schemas.ranges import BlockerSettings, RefreshStatus
from .fetcher import RangeFetcher
from .middleware import RangeBlockMiddleware, BlockConfirmer
from .refresher import RangeRefresher, RefreshState
from .table import RangeTable

logger = logging.getLogger(f"rangeblock.{__name__}")


class RangeBlocker:
    """
    Wires the range table, fetcher, refresh loop and middleware together.

    The table is created here and shared by reference with the refresher
    (writer) and the middleware (reader). Several blockers can coexist.
    """
    def __init__(self,
                 settings: Optional[BlockerSettings] = None,
                 confirmer: Optional[Union[BlockConfirmer, Callable]] = None):
        self.settings: BlockerSettings = settings or BlockerSettings()
        self.confirmer = confirmer
        self.table = RangeTable()
        self.refresher: Optional[RangeRefresher] = None
        self._owns_session = False
        self._session: Optional[requests.Session] = None

    def install(self, app: FastAPI):
        """Mount the blocking middleware on `app`. Must be called before the app starts."""
        app.add_middleware(
            RangeBlockMiddleware,
            table=self.table,
            confirmer=self.confirmer,
            trust_forwarded=self.settings.trust_forwarded_headers,
        )
        logger.info("Range block middleware installed.")

    def start(self,
              stop_event: Optional[threading.Event] = None,
              session: Optional[requests.Session] = None) -> RangeRefresher:
        """
        Begin refreshing the table in the background.

        Args:
            stop_event: Cancellation token; setting it ends the loop.
            session: Transport client used for fetching. A private session is
                created (and closed on stop) when omitted.
        """
        if self.refresher is not None and self.refresher.is_running():
            logger.info("Range blocker already started.")
            return self.refresher

        if session is None:
            session = requests.Session()
            self._owns_session = True
        self._session = session

        fetcher = RangeFetcher(
            session,
            url=self.settings.source_url,
            timeout=self.settings.request_timeout_seconds,
        )
        self.refresher = RangeRefresher(
            self.table,
            fetcher,
            selector=self.settings.selector(),
            interval=self.settings.refresh_interval_seconds,
        )
        self.refresher.start(stop_event)
        return self.refresher

    def stop(self, timeout: Optional[float] = None) -> bool:
        stopped = True
        if self.refresher is not None:
            stopped = self.refresher.stop(wait=True, timeout=timeout)
            if not stopped:
                logger.warning("Range refresher did not stop within the timeout.")
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None
            self._owns_session = False
        return stopped

    def status(self) -> RefreshStatus:
        if self.refresher is None:
            snapshot = self.table.current
            return RefreshStatus(
                state=RefreshState.STOPPED.value,
                running=False,
                range_count=len(snapshot),
                sync_token=snapshot.sync_token,
                create_date=snapshot.create_date,
            )
        return self.refresher.status()
