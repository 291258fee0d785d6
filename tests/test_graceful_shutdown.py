"""
Tests for graceful shutdown functionality.
"""

import pytest
import asyncio
from user_service.main import GracefulShutdownManager


def test_shutdown_manager_initialization():
    """Test shutdown manager initializes from settings."""
    manager = GracefulShutdownManager()
    assert manager.is_shutting_down is False
    assert manager.active_requests == 0
    assert manager.shutdown_timeout == 30


def test_request_tracking():
    """Test request start/finish tracking."""
    manager = GracefulShutdownManager()

    manager.request_started()
    manager.request_started()
    assert manager.active_requests == 2

    manager.request_finished()
    manager.request_finished()
    assert manager.active_requests == 0


def test_request_finished_never_negative():
    manager = GracefulShutdownManager()

    manager.request_finished()
    assert manager.active_requests == 0


def test_shutdown_prevents_new_requests():
    """Test that new requests aren't counted during shutdown."""
    manager = GracefulShutdownManager()
    manager.is_shutting_down = True

    manager.request_started()

    assert manager.active_requests == 0


@pytest.mark.asyncio
async def test_shutdown_with_no_active_requests():
    """Test graceful shutdown completes immediately when no active requests."""
    manager = GracefulShutdownManager()

    await asyncio.wait_for(manager.initiate_shutdown(), timeout=1.0)

    assert manager.is_shutting_down is True


@pytest.mark.asyncio
async def test_shutdown_waits_for_active_requests():
    """Test graceful shutdown waits for active requests to complete."""
    manager = GracefulShutdownManager()
    manager.request_started()
    manager.request_started()

    shutdown_task = asyncio.create_task(manager.initiate_shutdown())
    await asyncio.sleep(0.15)
    assert not shutdown_task.done()
    assert manager.is_shutting_down is True

    manager.request_finished()
    await asyncio.sleep(0.15)
    assert not shutdown_task.done()

    manager.request_finished()
    await asyncio.wait_for(shutdown_task, timeout=1.0)


@pytest.mark.asyncio
async def test_shutdown_timeout():
    """Test graceful shutdown gives up after the timeout."""
    manager = GracefulShutdownManager(timeout=0.3)
    manager.request_started()

    await asyncio.wait_for(manager.initiate_shutdown(), timeout=2.0)

    assert manager.is_shutting_down is True
    assert manager.active_requests == 1


@pytest.mark.asyncio
async def test_multiple_shutdown_calls():
    """Test that calling initiate_shutdown multiple times is safe."""
    manager = GracefulShutdownManager()

    await manager.initiate_shutdown()
    await manager.initiate_shutdown()

    assert manager.is_shutting_down is True


@pytest.mark.asyncio
async def test_shutdown_integration(client):
    """Test that the middleware refuses requests while draining."""
    from user_service.main import shutdown_manager

    response = await client.get("/api/users")
    assert response.status_code == 200

    original_state = shutdown_manager.is_shutting_down
    shutdown_manager.is_shutting_down = True
    try:
        response = await client.get("/api/users")
        assert response.status_code == 503
        assert "shutting down" in response.json()["message"].lower()
        assert response.headers["Retry-After"] == "10"
    finally:
        shutdown_manager.is_shutting_down = original_state
