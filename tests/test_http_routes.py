"""
Tests for HTTP routes.
"""

import pytest

from lobby import JoinLobby


class TestIndexRoute:
    """Tests for the liveness page."""

    def test_index_returns_200(self, client):
        """Index should return 200."""
        response = client.get('/')
        assert response.status_code == 200

    def test_index_contains_message(self, client):
        """Index should say the backend is running."""
        response = client.get('/')
        assert b'Backend is running!' in response.data


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_200(self, client):
        """Health endpoint should return 200 when healthy."""
        response = client.get('/health')
        assert response.status_code == 200

    def test_health_returns_json(self, client):
        """Health endpoint should return JSON."""
        response = client.get('/health')
        assert response.content_type == 'application/json'

    def test_health_contains_status(self, client):
        """Health response should contain status field."""
        data = client.get('/health').get_json()
        assert data['status'] == 'healthy'
        assert 'timestamp' in data
        assert 'version' in data

    def test_health_counts_lobbies(self, client, clean_lobbies):
        """Health response should report the number of open lobbies."""
        assert client.get('/health').get_json()['lobbies'] == 0

        clean_lobbies.handle(JoinLobby('A', 'p1'))
        clean_lobbies.handle(JoinLobby('B', 'p2'))

        assert client.get('/health').get_json()['lobbies'] == 2
