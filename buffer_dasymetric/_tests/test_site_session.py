"""
Unit tests for site cancellation and stale-result handling.

Tests:
1. CancelToken is one-way
2. A newer submission cancels the one in flight and wins
3. cancel() discards the in-flight result
4. Sequential submissions each publish

Run with: python -m pytest buffer_dasymetric/_tests/test_site_session.py -v
"""

import threading

import pytest

from buffer_dasymetric.config_types import ParallelConfig
from buffer_dasymetric.models.errors import CollaboratorUnavailableError
from buffer_dasymetric.parallel.site_session import CancelToken, SiteSession
from buffer_dasymetric.validation import validate_site_input

SEQUENTIAL = ParallelConfig(enabled=False)


def _site(name):
    return validate_site_input(38.8977, -77.0365, [0.25, 0.5], "miles", name)


def _submit_in_thread(session, site):
    result = {}

    def run():
        result["report"] = session.submit(site)

    thread = threading.Thread(target=run)
    thread.start()
    return thread, result


class TestCancelToken:
    def test_one_way(self):
        token = CancelToken()
        assert not token.is_cancelled()
        token.cancel()
        token.cancel()
        assert token.is_cancelled()


class TestSiteSession:
    def test_submissions_publish_in_turn(self, provider, list_source):
        session = SiteSession(list_source([]), provider, SEQUENTIAL)

        first = session.submit(_site("first"))
        second = session.submit(_site("second"))

        assert first.site_name == "first"
        assert second.site_name == "second"
        assert session.latest_report is second
        assert session.generation == 2

    def test_newer_submission_wins(self, provider, blocking_source):
        source = blocking_source([])
        session = SiteSession(source, provider, SEQUENTIAL)

        thread, stale = _submit_in_thread(session, _site("old"))
        assert source.entered.wait(timeout=5)

        source.block = False
        fresh = session.submit(_site("new"))
        source.gate.set()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert stale["report"] is None
        assert fresh.site_name == "new"
        assert session.latest_report is fresh

    def test_stale_result_never_overwrites(self, provider, blocking_source):
        source = blocking_source([])
        session = SiteSession(source, provider, SEQUENTIAL)

        thread, _ = _submit_in_thread(session, _site("old"))
        assert source.entered.wait(timeout=5)
        source.block = False
        session.submit(_site("new"))

        # The old computation finishes after the new one published
        source.gate.set()
        thread.join(timeout=10)

        assert session.latest_report.site_name == "new"

    def test_cancel_discards_in_flight(self, provider, blocking_source):
        source = blocking_source([])
        session = SiteSession(source, provider, SEQUENTIAL)

        thread, result = _submit_in_thread(session, _site("doomed"))
        assert source.entered.wait(timeout=5)
        session.cancel()
        source.gate.set()
        thread.join(timeout=10)

        assert result["report"] is None
        assert session.latest_report is None

    def test_collaborator_error_propagates(self, provider):
        session = SiteSession(None, provider, SEQUENTIAL)
        with pytest.raises(CollaboratorUnavailableError):
            session.submit(_site("nowhere"))
