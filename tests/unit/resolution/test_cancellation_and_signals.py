"""Tests for CancellationToken and RepositoryEvents."""

import asyncio
from unittest.mock import MagicMock

import pytest

from mrblame.resolution import CancellationToken, RepositoryEvents


class TestCancellationToken:
    def test_initial_state(self):
        assert not CancellationToken().is_cancelled
        assert not CancellationToken.none().is_cancelled

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        waiter = asyncio.ensure_future(token.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        token.cancel()
        await asyncio.wait_for(waiter, timeout=1)

        assert token.is_cancelled

    @pytest.mark.asyncio
    async def test_wait_on_already_cancelled_token(self):
        token = CancellationToken()
        token.cancel()

        await asyncio.wait_for(token.wait(), timeout=1)


class TestRepositoryEvents:
    def test_emit_calls_every_listener(self):
        events = RepositoryEvents()
        first, second = MagicMock(), MagicMock()
        events.subscribe(first)
        events.subscribe(second)

        events.emit()

        first.assert_called_once_with()
        second.assert_called_once_with()

    def test_unsubscribe_during_emit(self):
        events = RepositoryEvents()
        calls = []
        unsubscribe = None

        def once():
            calls.append(1)
            unsubscribe()

        unsubscribe = events.subscribe(once)
        events.emit()
        events.emit()

        assert calls == [1]
        assert events.listener_count == 0
