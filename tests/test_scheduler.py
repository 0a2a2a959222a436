"""
Tests for the session registry and tick scheduler.
"""

import asyncio

import pytest

from packet_replayer.models import InputIntent
from packet_replayer.registry import SessionRegistry
from packet_replayer.scheduler import TickScheduler
from packet_replayer.session import PlaybackSession

from tests.conftest import SHORT_FRAMES, FakeConnection


def make_session(name, recording, registry):
    session = PlaybackSession(name, recording, FakeConnection(), registry=registry)
    registry.register(session)
    return session


def test_registry_membership(short_recording):
    registry = SessionRegistry()
    session = make_session("a", short_recording, registry)

    assert len(registry) == 1
    assert session in registry
    assert registry.unregister(session)
    assert not registry.unregister(session)
    assert len(registry) == 0


def test_for_each_allows_removal(short_recording):
    registry = SessionRegistry()
    sessions = [make_session(str(i), short_recording, registry) for i in range(5)]
    visited = []

    def visit(session):
        visited.append(session)
        for other in sessions:
            registry.unregister(other)

    registry.for_each(visit)

    assert len(visited) == 1
    assert len(registry) == 0


def test_tick_uses_elapsed_clock_time(short_recording, clock):
    registry = SessionRegistry()
    session = make_session("a", short_recording, registry)
    scheduler = TickScheduler(registry, clock=clock)

    assert scheduler.tick() == 0.0

    clock.advance(0.02)
    assert scheduler.tick() == pytest.approx(0.02)
    assert session.connection.sent == []

    clock.advance(0.02)
    scheduler.tick()
    assert session.connection.sent == [SHORT_FRAMES[0]]


def test_end_to_end_three_frames(short_recording, clock):
    registry = SessionRegistry()
    session = make_session("a", short_recording, registry)
    scheduler = TickScheduler(registry, clock=clock)
    scheduler.tick()

    for _ in range(3):
        clock.advance(0.031)
        scheduler.tick()

    assert session.connection.sent == SHORT_FRAMES
    assert session in registry

    clock.advance(0.031)
    scheduler.tick()

    assert session.connection.close_count == 1
    assert session not in registry

    clock.advance(0.031)
    scheduler.tick()
    assert session.connection.close_count == 1


def test_sessions_are_independent(short_recording, clock):
    registry = SessionRegistry()
    playing = make_session("playing", short_recording, registry)
    paused = make_session("paused", short_recording, registry)
    paused.apply(InputIntent(shoot_start=True))
    scheduler = TickScheduler(registry, clock=clock)
    scheduler.tick()

    for _ in range(2):
        clock.advance(0.05)
        scheduler.tick()

    assert playing.connection.sent == SHORT_FRAMES[:2]
    assert paused.connection.sent == []

    paused.apply(InputIntent(move_right=True))
    clock.advance(0.001)
    scheduler.tick()
    assert paused.connection.sent == SHORT_FRAMES[:1]


def test_failing_session_does_not_stop_tick(short_recording, clock):
    class BrokenConnection(FakeConnection):
        def send(self, frame):
            raise RuntimeError("boom")

    registry = SessionRegistry()
    broken = PlaybackSession("broken", short_recording, BrokenConnection(), registry=registry)
    registry.register(broken)
    healthy = make_session("healthy", short_recording, registry)
    scheduler = TickScheduler(registry, clock=clock)
    scheduler.tick()

    clock.advance(0.05)
    scheduler.tick()

    assert healthy.connection.sent == [SHORT_FRAMES[0]]


async def test_start_and_stop(short_recording):
    registry = SessionRegistry()
    session = make_session("a", short_recording, registry)
    scheduler = TickScheduler(registry, interval=0.001)

    scheduler.start()
    assert scheduler.running
    for _ in range(200):
        if session.exhausted:
            break
        await asyncio.sleep(0.01)
    await scheduler.stop()

    assert not scheduler.running
    assert scheduler.ticks > 0
    assert session.connection.sent == SHORT_FRAMES
    assert session.exhausted
