"""
Bulls & Cows Lobby Server

Pairs two players into a lobby, relays their secret 4-digit codes and sends
per-position feedback on every guess. Built with Flask and Socket.IO for
WebSocket support.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request
from flask_socketio import SocketIO, emit

from config import (
    CORS_ORIGINS,
    DEBUG,
    HOST,
    LOG_FORMAT,
    LOG_LEVEL,
    PORT,
    SECRET_KEY,
    VERSION,
)
from lobby import (
    ERROR,
    Command,
    Disconnect,
    JoinLobby,
    LobbyCoordinator,
    RestartGame,
    SetSecret,
    SubmitGuess,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(level=getattr(logging, LOG_LEVEL), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# =============================================================================
# Flask Application Setup
# =============================================================================

app = Flask(__name__)
app.config['SECRET_KEY'] = SECRET_KEY

socketio = SocketIO(
    app,
    cors_allowed_origins=CORS_ORIGINS,
    logger=DEBUG,
    engineio_logger=DEBUG,
    async_mode='threading'
)

coordinator = LobbyCoordinator()

# =============================================================================
# Transport
# =============================================================================


class SocketIOTransport:
    """Delivers coordinator effects over the Socket.IO server."""

    def __init__(self, sio: SocketIO, namespace: str = '/'):
        self.sio = sio
        self.namespace = namespace

    def send(self, participant_id: str, event: str, payload: Any = None) -> None:
        self._emit(event, payload, participant_id)

    def broadcast(self, lobby_key: str, event: str, payload: Any = None) -> None:
        self._emit(event, payload, lobby_key)

    def enter(self, participant_id: str, lobby_key: str) -> None:
        self.sio.server.enter_room(participant_id, lobby_key, namespace=self.namespace)

    def close(self, participant_id: str) -> None:
        self.sio.server.disconnect(participant_id, namespace=self.namespace)

    def _emit(self, event: str, payload: Any, to: str) -> None:
        if payload is None:
            self.sio.emit(event, to=to, namespace=self.namespace)
        else:
            self.sio.emit(event, payload, to=to, namespace=self.namespace)


transport = SocketIOTransport(socketio)


def run_command(command: Command) -> None:
    coordinator.dispatch(command, transport)

# =============================================================================
# Payload Helpers
# =============================================================================


def get_lobby_key(data: Any) -> str:
    """Extract the lobby key from a payload; a bare string is the key itself."""
    if isinstance(data, str):
        return data.strip()
    if isinstance(data, dict):
        return str(data.get('lobby_key') or '').strip()
    return ''


def missing_lobby_key() -> None:
    emit(ERROR, {'message': 'Missing lobby_key', 'reason': 'missing_lobby_key'})


def get_code(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    code = data.get('code')
    return code if isinstance(code, str) else None

# =============================================================================
# HTTP Routes
# =============================================================================


@app.route('/')
def index() -> str:
    """Plain liveness message."""
    return 'Backend is running!'


@app.route('/health')
def health() -> Tuple[Dict[str, Any], int]:
    """Health check endpoint for monitoring."""
    with coordinator.lock:
        lobby_count = len(coordinator.lobbies)

    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'version': VERSION,
        'lobbies': lobby_count,
    }), 200

# =============================================================================
# Socket.IO Event Handlers
# =============================================================================


@socketio.on('connect')
def on_connect() -> None:
    """Handle client connection."""
    logger.info(f"Client connected: {request.sid}")


@socketio.on('disconnect')
def on_disconnect(reason: Any = None) -> None:
    """Handle client disconnection and update lobby rosters."""
    logger.info(f"Client disconnected: {request.sid}")
    try:
        run_command(Disconnect(request.sid))
    except Exception as e:
        logger.error(f"Error handling disconnect: {e}")


@socketio.on('join_lobby')
def on_join_lobby(data: Any) -> None:
    """Join (or lazily create) a lobby."""
    try:
        lobby_key = get_lobby_key(data)
        if not lobby_key:
            missing_lobby_key()
            return

        logger.info(f"Join lobby request: lobby={lobby_key}, sid={request.sid}")
        run_command(JoinLobby(lobby_key, request.sid))
    except Exception as e:
        logger.error(f"Error joining lobby: {e}")
        emit(ERROR, {'message': 'Failed to join lobby. Please try again.', 'reason': 'internal'})


@socketio.on('set_secret')
def on_set_secret(data: Any) -> None:
    """Set this player's secret code."""
    try:
        lobby_key = get_lobby_key(data)
        if not lobby_key:
            missing_lobby_key()
            return

        run_command(SetSecret(lobby_key, request.sid, get_code(data)))
    except Exception as e:
        logger.error(f"Error setting secret: {e}")
        emit(ERROR, {'message': 'Failed to set secret. Please try again.', 'reason': 'internal'})


@socketio.on('submit_guess')
def on_submit_guess(data: Any) -> None:
    """Submit a guess for the opponent's secret code."""
    try:
        lobby_key = get_lobby_key(data)
        if not lobby_key:
            missing_lobby_key()
            return

        run_command(SubmitGuess(lobby_key, request.sid, get_code(data)))
    except Exception as e:
        logger.error(f"Error submitting guess: {e}")
        emit(ERROR, {'message': 'Failed to submit guess. Please try again.', 'reason': 'internal'})


@socketio.on('restart_game')
def on_restart_game(data: Any) -> None:
    """Start a new game in the same lobby."""
    try:
        lobby_key = get_lobby_key(data)
        if not lobby_key:
            missing_lobby_key()
            return

        run_command(RestartGame(lobby_key, request.sid))
    except Exception as e:
        logger.error(f"Error restarting game: {e}")
        emit(ERROR, {'message': 'Failed to restart game. Please try again.', 'reason': 'internal'})


# =============================================================================
# Application Entry Point
# =============================================================================

def main() -> None:
    logger.info("=" * 50)
    logger.info("Starting Bulls & Cows Lobby Server")
    logger.info(f"Debug mode: {DEBUG}")
    logger.info(f"Host: {HOST}, Port: {PORT}")
    logger.info("=" * 50)
    socketio.run(app, host=HOST, port=PORT, debug=DEBUG, allow_unsafe_werkzeug=DEBUG)


if __name__ == '__main__':
    main()
