"""
Pytest configuration and fixtures for the lobby server tests.
"""

import os
import pytest

# Set test environment before importing app
os.environ['DEBUG'] = 'false'

from app import app, socketio, coordinator


@pytest.fixture(scope='function')
def test_app():
    """Configure the Flask application for testing."""
    app.config['TESTING'] = True
    app.config['SECRET_KEY'] = 'test-secret-key'
    yield app


@pytest.fixture(scope='function')
def client(test_app):
    """Create a test client for HTTP requests."""
    return test_app.test_client()


@pytest.fixture(scope='function')
def socketio_client(test_app):
    """Create a Socket.IO test client."""
    test_client = socketio.test_client(test_app)
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()


@pytest.fixture(scope='function')
def make_client(test_app):
    """Factory for additional Socket.IO test clients."""
    made = []

    def _make():
        test_client = socketio.test_client(test_app)
        made.append(test_client)
        return test_client

    yield _make
    for test_client in made:
        if test_client.is_connected():
            test_client.disconnect()


@pytest.fixture(scope='function')
def clean_lobbies():
    """Ensure the coordinator holds no lobbies before and after each test."""
    with coordinator.lock:
        coordinator.lobbies.clear()
    yield coordinator
    with coordinator.lock:
        coordinator.lobbies.clear()
