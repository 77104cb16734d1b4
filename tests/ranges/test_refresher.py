import threading

import pytest

from core.ranges.fetcher import FetchResult, NotModified, RangeFetcher
from core.ranges.parser import parse_document
from core.ranges.refresher import RangeRefresher, RefreshState
from core.ranges.snapshot import Snapshot, parse_cidr
from core.ranges.table import RangeTable
from schemas.ranges import FilterSelector
from utils.exceptions import DecodeError, TransportError
from tests.fakes import FakeResponse, FakeSession


class ScriptedFetcher:
    """Returns (or raises) queued outcomes and records the validators it was given."""
    url = "https://example.test/ranges.json"

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.validators = []
        self.called = threading.Event()

    def fetch(self, validator=None):
        self.validators.append(validator)
        self.called.set()
        outcome = self.outcomes.pop(0) if self.outcomes else NotModified(validator or "")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def document(sample_document):
    return parse_document(sample_document)

def test_success_publishes_snapshot_and_stores_validator(document):
    table = RangeTable()
    fetcher = ScriptedFetcher([FetchResult(document, '"v1"')])
    refresher = RangeRefresher(table, fetcher, FilterSelector(region="us-east-1", service="ec2"), interval=60)

    assert refresher.run_once() is RefreshState.UPDATING
    assert refresher.validator == '"v1"'
    assert refresher.state is RefreshState.IDLE
    assert [str(n) for n in table.current] == ["10.0.0.0/8", "2600:1f18::/33"]
    assert table.lookup("10.1.2.3")
    assert not table.lookup("172.16.5.5")

def test_not_modified_leaves_snapshot_identical(document):
    table = RangeTable()
    fetcher = ScriptedFetcher([FetchResult(document, '"v1"'), NotModified('"v2"')])
    refresher = RangeRefresher(table, fetcher, interval=60)
    refresher.run_once()
    before = table.current

    assert refresher.run_once() is RefreshState.SKIPPING
    assert table.current is before
    assert refresher.validator == '"v2"'
    assert fetcher.validators == ["", '"v1"']

@pytest.mark.parametrize("error", [TransportError("down"), DecodeError("garbage")])
def test_fetch_error_keeps_last_good_snapshot(error):
    existing = Snapshot([parse_cidr("10.0.0.0/8")], sync_token="old")
    table = RangeTable(existing)
    refresher = RangeRefresher(table, ScriptedFetcher([error]), interval=60)
    refresher._validator = '"v1"'

    assert refresher.run_once() is RefreshState.IDLE
    assert table.current is existing
    assert refresher.validator == '"v1"'
    status = refresher.status()
    assert status.failures == 1
    assert status.cycles == 1
    assert status.last_error == str(error)
    assert status.last_failure_at is not None
    assert status.last_success_at is None

def test_works_end_to_end_with_real_fetcher(sample_document):
    session = FakeSession([
        FakeResponse(200, sample_document, etag='"e1"'),
        FakeResponse(304, etag='"e1"'),
    ])
    table = RangeTable()
    refresher = RangeRefresher(table, RangeFetcher(session), FilterSelector(service="s3"), interval=60)

    refresher.run_once()
    first = table.current
    refresher.run_once()

    assert [str(n) for n in first] == ["3.5.0.0/16"]
    assert table.current is first
    assert session.calls[1]["headers"]["If-None-Match"] == '"e1"'

def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        RangeRefresher(RangeTable(), ScriptedFetcher([]), interval=0)

def test_start_fetches_immediately_and_stops_on_request(document):
    table = RangeTable()
    fetcher = ScriptedFetcher([FetchResult(document, '"v1"')])
    refresher = RangeRefresher(table, fetcher, interval=3600)

    refresher.start()
    assert fetcher.called.wait(5), "first cycle should not wait for the interval"
    assert refresher.is_running()

    assert refresher.stop(timeout=5)
    assert not refresher.is_running()
    assert refresher.state is RefreshState.STOPPED
    assert len(table) == 4
    assert len(fetcher.validators) == 1

def test_external_stop_event_cancels_loop(document):
    stop_event = threading.Event()
    fetcher = ScriptedFetcher([FetchResult(document, '"v1"')])
    refresher = RangeRefresher(RangeTable(), fetcher, interval=3600)

    refresher.start(stop_event)
    assert fetcher.called.wait(5)
    stop_event.set()
    refresher.join(5)

    assert not refresher.is_running()

def test_loop_survives_unexpected_errors():
    calls = []
    done = threading.Event()

    class Exploding:
        url = "https://example.test/ranges.json"

        def fetch(self, validator=None):
            calls.append(validator)
            if len(calls) >= 3:
                done.set()
            raise RuntimeError("boom")

    refresher = RangeRefresher(RangeTable(), Exploding(), interval=0.01)
    refresher.start()
    assert done.wait(5)
    refresher.stop(timeout=5)
    assert len(calls) >= 3
    assert not refresher.is_running()
