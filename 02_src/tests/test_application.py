"""Tests for Application."""

import asyncio
from dataclasses import replace

import pytest

from dialogue_core.app import Application
from dialogue_core.models import ConnectionState, ProviderFailure
from dialogue_core.telemetry import read_records

from conftest import make_request, settle


@pytest.fixture
def application(fallback_settings, dispatch_settings):
    return Application(
        provider_settings=fallback_settings,
        dispatch_settings=dispatch_settings,
    )


class TestApplicationStart:
    """Tests for Application.start()."""

    @pytest.mark.asyncio
    async def test_start_initializes_components(self, application):
        """Test that start initializes all components."""
        await application.start(run_loop=False)

        assert application._broker is not None
        assert application._event_bus is not None
        assert application._telemetry is not None
        assert application._queue is not None
        assert application._rate_limiter is not None
        assert application._scheduler is not None
        assert application._loop_task is None

        await application.stop()

    @pytest.mark.asyncio
    async def test_start_wires_dependencies(self, application):
        """Test that the scheduler shares the application's components."""
        await application.start(run_loop=False)

        scheduler = application.scheduler
        assert scheduler._queue is application.queue
        assert scheduler._rate_limiter is application.rate_limiter
        assert scheduler._broker is application.broker
        assert application.broker.status.connection_state == ConnectionState.FALLBACK

        await application.stop()

    @pytest.mark.asyncio
    async def test_property_raises_when_not_started(self, application):
        """Test that component properties raise before start."""
        with pytest.raises(RuntimeError, match="not started"):
            _ = application.queue
        with pytest.raises(RuntimeError, match="not started"):
            application.enqueue(make_request())


class TestApplicationDispatch:
    """Tests for enqueue and notifications."""

    @pytest.mark.asyncio
    async def test_manual_ticks_deliver_response(self, application, dispatch_settings):
        """Test a response travels from enqueue to subscribers and telemetry."""
        await application.start(run_loop=False)
        responses = []

        async def on_response(response):
            responses.append(response)

        application.subscribe_responses(on_response)

        request_id = application.enqueue(make_request(prompt="Nice weather"))
        await application.tick(0.0)
        await settle()
        await application.tick(0.0)

        assert [r.request_id for r in responses] == [request_id]
        assert "Prompt: Nice weather" in responses[0].content
        assert [r.kind for r in application.telemetry.records()] == ["response"]
        assert len(read_records(dispatch_settings.telemetry_path)) == 1

        await application.stop()

    @pytest.mark.asyncio
    async def test_terminal_failure_reaches_subscribers(self, fallback_settings, dispatch_settings):
        """Test that failures are delivered after retries run out."""
        app = Application(
            provider_settings=fallback_settings,
            dispatch_settings=replace(dispatch_settings, max_retries=0),
        )
        await app.start(run_loop=False)
        failures = []

        async def on_failure(error):
            failures.append(error)

        app.subscribe_failures(on_failure)
        app.enqueue(make_request(prompt=""))
        await app.tick(0.0)
        await settle()
        await app.tick(0.0)

        assert [f.kind for f in failures] == [ProviderFailure("prompt cannot be empty")]
        await app.stop()

    @pytest.mark.asyncio
    async def test_tick_loop_runs_in_background(self, application, dispatch_settings):
        """Test that the started loop dispatches without manual ticks."""
        await application.start()
        done = asyncio.Event()

        async def on_response(response):
            done.set()

        application.subscribe_responses(on_response)
        application.enqueue(make_request())

        await asyncio.wait_for(done.wait(), timeout=2.0)
        await application.stop()

        assert application._loop_task is None
        assert len(read_records(dispatch_settings.telemetry_path)) == 1

    @pytest.mark.asyncio
    async def test_stop_waits_for_in_flight(self, application, dispatch_settings):
        """Test that stop resolves dispatched work and flushes telemetry."""
        await application.start(run_loop=False)
        application.enqueue(make_request())
        await application.tick(0.0)
        assert application.scheduler.in_flight_count == 1

        await application.stop()

        assert application.scheduler.in_flight_count == 0
        assert len(read_records(dispatch_settings.telemetry_path)) == 1


class TestApplicationReset:
    """Tests for Application.reset()."""

    @pytest.mark.asyncio
    async def test_reset_clears_queue_and_telemetry(self, application):
        """Test that reset drops queued work and buffered records."""
        await application.start(run_loop=False)
        application.enqueue(make_request(speaker=1))
        await application.tick(0.0)
        await settle()
        await application.tick(0.0)
        application.enqueue(make_request(speaker=2))
        application.rate_limiter.apply_backoff(make_request().speaker, 3.0)

        await application.reset()

        assert application.queue.is_empty()
        assert application.rate_limiter.global_remaining == 0.0
        assert application.telemetry.records() == []
        assert application.enqueue(make_request()) == 2

        await application.stop()

    @pytest.mark.asyncio
    async def test_stop_after_reset_writes_pending_telemetry(self, application, dispatch_settings):
        """Test that records buffered before a reset still reach the file on stop."""
        await application.start(run_loop=False)
        application.enqueue(make_request())
        await application.scheduler.tick(0.0)
        await settle()
        await application.scheduler.tick(0.0)

        sink = application.telemetry.sink
        assert sink.pending_count == 1
        assert not dispatch_settings.telemetry_path.exists()

        await application.reset()
        assert len(application.telemetry) == 0

        await application.stop()

        assert sink.pending_count == 0
        records = read_records(dispatch_settings.telemetry_path)
        assert [r.kind for r in records] == ["response"]

    @pytest.mark.asyncio
    async def test_status(self, application):
        """Test the status snapshot."""
        await application.start(run_loop=False)
        application.enqueue(make_request())

        assert application.status() == {
            "provider": "openai",
            "connection_state": "fallback",
            "queue_depth": 1,
            "in_flight": 0,
            "global_cooldown_remaining": 0.0,
            "running": False,
        }

        await application.stop()
