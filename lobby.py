"""
Lobby registry and round state machine.

Inbound events are turned into command values and handled one at a time by
LobbyCoordinator.handle(), which mutates lobby state and returns the effects
(messages, room subscriptions, forced disconnects) the transport should
carry out. dispatch() serializes handle() together with the delivery of its
effects, so clients see messages in the order the state changed.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from config import CODE_LENGTH, MAX_LOBBY_SIZE
from feedback import evaluate, is_solved, validate_code

logger = logging.getLogger(__name__)

# =============================================================================
# Outbound Event Names
# =============================================================================

REJECT_OVERFLOW = 'reject_overflow'
LOBBY_SNAPSHOT = 'lobby_snapshot'
PARTICIPANT_COUNT = 'participant_count'
GAME_START = 'game_start'
GUESS_FEEDBACK = 'guess_feedback'
GAME_OVER = 'game_over'
NEXT_ROUND = 'next_round'
GAME_RESTARTED = 'game_restarted'
ERROR = 'error'

# =============================================================================
# State
# =============================================================================


class LobbyPhase(str, Enum):
    WAITING = 'waiting'
    SETTING_SECRETS = 'setting_secrets'
    IN_ROUND = 'in_round'
    ROUND_RESOLVING = 'round_resolving'
    GAME_OVER = 'game_over'


@dataclass
class Participant:
    participant_id: str
    secret: Optional[str] = None
    has_guessed_this_round: bool = False
    last_input: Optional[str] = None

    def reset(self) -> None:
        self.secret = None
        self.has_guessed_this_round = False
        self.last_input = None

    def public_view(self) -> Dict[str, Any]:
        return {
            'participant_id': self.participant_id,
            'has_secret': self.secret is not None,
            'has_guessed_this_round': self.has_guessed_this_round,
        }


@dataclass
class Lobby:
    lobby_key: str
    participants: List[Participant] = field(default_factory=list)
    phase: LobbyPhase = LobbyPhase.WAITING
    round: int = 1
    winner: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.participants)

    @property
    def is_full(self) -> bool:
        return self.size >= MAX_LOBBY_SIZE

    def find(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.participant_id == participant_id:
                return p
        return None

    def opponent_of(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.participant_id != participant_id:
                return p
        return None

    def all_secrets_set(self) -> bool:
        return self.size == MAX_LOBBY_SIZE and all(p.secret is not None for p in self.participants)

    def round_complete(self) -> bool:
        return self.size == MAX_LOBBY_SIZE and all(p.has_guessed_this_round for p in self.participants)

    def settle(self) -> None:
        """Recompute the phase from participant state. GAME_OVER only ends on restart."""
        if self.phase is LobbyPhase.GAME_OVER:
            return
        if self.size < MAX_LOBBY_SIZE:
            self.phase = LobbyPhase.WAITING
        elif not self.all_secrets_set():
            self.phase = LobbyPhase.SETTING_SECRETS
        elif any(p.has_guessed_this_round for p in self.participants):
            self.phase = LobbyPhase.ROUND_RESOLVING
        else:
            self.phase = LobbyPhase.IN_ROUND

    def snapshot_for(self, participant_id: str) -> Dict[str, Any]:
        return {
            'lobby_key': self.lobby_key,
            'you': participant_id,
            'phase': self.phase.value,
            'round': self.round,
            'participants': [p.public_view() for p in self.participants],
        }

# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class JoinLobby:
    lobby_key: str
    participant_id: str


@dataclass(frozen=True)
class SetSecret:
    lobby_key: str
    participant_id: str
    code: Any


@dataclass(frozen=True)
class SubmitGuess:
    lobby_key: str
    participant_id: str
    code: Any


@dataclass(frozen=True)
class RestartGame:
    lobby_key: str
    participant_id: Optional[str] = None


@dataclass(frozen=True)
class Disconnect:
    participant_id: str


Command = Union[JoinLobby, SetSecret, SubmitGuess, RestartGame, Disconnect]

# =============================================================================
# Effects
# =============================================================================


class EffectKind(str, Enum):
    SEND = 'send'
    BROADCAST = 'broadcast'
    ENTER = 'enter'
    CLOSE = 'close'


@dataclass(frozen=True)
class Effect:
    """
    Something the transport must do on behalf of the coordinator.

    target is a participant id for SEND, ENTER and CLOSE, and a lobby key
    for BROADCAST. ENTER also carries the lobby key in `lobby_key`.
    """
    kind: EffectKind
    target: str
    event: Optional[str] = None
    payload: Any = None
    lobby_key: Optional[str] = None


def send(participant_id: str, event: str, payload: Any = None) -> Effect:
    return Effect(EffectKind.SEND, participant_id, event, payload)


def broadcast(lobby_key: str, event: str, payload: Any = None) -> Effect:
    return Effect(EffectKind.BROADCAST, lobby_key, event, payload)


class Transport(Protocol):
    """Delivery side of the connection layer."""

    def send(self, participant_id: str, event: str, payload: Any = None) -> None: ...

    def broadcast(self, lobby_key: str, event: str, payload: Any = None) -> None: ...

    def enter(self, participant_id: str, lobby_key: str) -> None: ...

    def close(self, participant_id: str) -> None: ...


def apply_effects(effects: List[Effect], transport: Transport) -> None:
    """Hand a list of effects to the transport, in order."""
    for effect in effects:
        if effect.kind is EffectKind.SEND:
            transport.send(effect.target, effect.event, effect.payload)
        elif effect.kind is EffectKind.BROADCAST:
            transport.broadcast(effect.target, effect.event, effect.payload)
        elif effect.kind is EffectKind.ENTER:
            transport.enter(effect.target, effect.lobby_key)
        elif effect.kind is EffectKind.CLOSE:
            transport.close(effect.target)

# =============================================================================
# Coordinator
# =============================================================================


class LobbyCoordinator:
    """
    Owns every lobby in the process and the rules that move them along.

    handle() is the only writer of `lobbies`; callers that may run
    concurrently go through dispatch(), which serializes it.
    """

    def __init__(self) -> None:
        self.lobbies: Dict[str, Lobby] = {}
        self.lock = threading.RLock()

    def dispatch(self, command: Command, transport: Transport) -> List[Effect]:
        # Reentrant: closing a connection re-enters dispatch() on this thread
        # through the disconnect event.
        with self.lock:
            effects = self.handle(command)
            apply_effects(effects, transport)
        return effects

    def handle(self, command: Command) -> List[Effect]:
        if isinstance(command, JoinLobby):
            return self.join(command.lobby_key, command.participant_id)
        if isinstance(command, SetSecret):
            return self.set_secret(command.lobby_key, command.participant_id, command.code)
        if isinstance(command, SubmitGuess):
            return self.submit_guess(command.lobby_key, command.participant_id, command.code)
        if isinstance(command, RestartGame):
            return self.restart(command.lobby_key)
        if isinstance(command, Disconnect):
            return self.disconnect(command.participant_id)
        raise TypeError(f"Unknown command: {command!r}")

    def get_lobby(self, lobby_key: str) -> Optional[Lobby]:
        return self.lobbies.get(lobby_key)

    def _member(
        self, lobby_key: str, participant_id: str, action: str
    ) -> Tuple[Optional[Lobby], Optional[Participant]]:
        lobby = self.lobbies.get(lobby_key)
        if lobby is None:
            logger.warning(f"Ignoring {action} for unknown lobby {lobby_key} from {participant_id}")
            return None, None
        me = lobby.find(participant_id)
        if me is None:
            logger.warning(f"Ignoring {action} from {participant_id}: not in lobby {lobby_key}")
            return lobby, None
        return lobby, me

    def join(self, lobby_key: str, participant_id: str) -> List[Effect]:
        lobby = self.lobbies.get(lobby_key)
        if lobby is None:
            lobby = Lobby(lobby_key)
            self.lobbies[lobby_key] = lobby
            logger.info(f"Lobby created: {lobby_key}")

        if lobby.find(participant_id) is not None:
            logger.debug(f"{participant_id} already in lobby {lobby_key}")
            return []

        if lobby.is_full:
            logger.info(f"Rejecting {participant_id} from full lobby {lobby_key}")
            return [
                send(participant_id, REJECT_OVERFLOW),
                Effect(EffectKind.CLOSE, participant_id),
            ]

        lobby.participants.append(Participant(participant_id))
        lobby.settle()
        logger.info(f"{participant_id} joined lobby {lobby_key} ({lobby.size}/{MAX_LOBBY_SIZE})")
        return [
            Effect(EffectKind.ENTER, participant_id, lobby_key=lobby_key),
            send(participant_id, LOBBY_SNAPSHOT, lobby.snapshot_for(participant_id)),
            broadcast(lobby_key, PARTICIPANT_COUNT, lobby.size),
        ]

    def set_secret(self, lobby_key: str, participant_id: str, code: Any) -> List[Effect]:
        lobby, me = self._member(lobby_key, participant_id, 'set_secret')
        if me is None:
            return []
        if not validate_code(code):
            logger.warning(f"Rejected secret from {participant_id} in lobby {lobby_key}")
            return [_invalid_code(participant_id, 'Secret')]
        if lobby.phase is LobbyPhase.GAME_OVER:
            logger.warning(f"Ignoring secret from {participant_id}: lobby {lobby_key} is over")
            return [_game_over(participant_id)]

        me.secret = code
        lobby.settle()
        logger.info(f"{participant_id} set secret in lobby {lobby_key}")

        if lobby.all_secrets_set():
            logger.info(f"Lobby {lobby_key} starting game")
            return [broadcast(lobby_key, GAME_START)]
        return []

    def submit_guess(self, lobby_key: str, participant_id: str, code: Any) -> List[Effect]:
        lobby, me = self._member(lobby_key, participant_id, 'submit_guess')
        if me is None:
            return []
        if not validate_code(code):
            logger.warning(f"Rejected guess from {participant_id} in lobby {lobby_key}")
            return [_invalid_code(participant_id, 'Guess')]
        if lobby.phase is LobbyPhase.GAME_OVER:
            logger.warning(f"Ignoring guess from {participant_id}: lobby {lobby_key} is over")
            return [_game_over(participant_id)]

        me.last_input = code
        me.has_guessed_this_round = True
        effects: List[Effect] = []

        opponent = lobby.opponent_of(participant_id)
        if opponent is not None and opponent.secret is not None:
            statuses = evaluate(opponent.secret, code)
            effects.append(send(participant_id, GUESS_FEEDBACK, {'statuses': statuses}))

            if is_solved(statuses):
                lobby.phase = LobbyPhase.GAME_OVER
                lobby.winner = participant_id
                logger.info(f"Lobby {lobby_key} game over, winner {participant_id}")
                effects.append(broadcast(lobby_key, GAME_OVER, {'winner': participant_id}))
                return effects

        if lobby.round_complete():
            for p in lobby.participants:
                p.has_guessed_this_round = False
            lobby.round += 1
            logger.info(f"Lobby {lobby_key} next round {lobby.round}")
            effects.append(broadcast(lobby_key, NEXT_ROUND))

        lobby.settle()
        return effects

    def disconnect(self, participant_id: str) -> List[Effect]:
        effects: List[Effect] = []
        for lobby_key, lobby in list(self.lobbies.items()):
            me = lobby.find(participant_id)
            if me is None:
                continue
            lobby.participants.remove(me)
            lobby.settle()
            logger.info(f"{participant_id} left lobby {lobby_key}")
            effects.append(broadcast(lobby_key, PARTICIPANT_COUNT, lobby.size))

            if lobby.size == 0:
                del self.lobbies[lobby_key]
                logger.info(f"Lobby deleted: {lobby_key}")
        return effects

    def restart(self, lobby_key: str) -> List[Effect]:
        lobby = self.lobbies.get(lobby_key)
        if lobby is None:
            logger.warning(f"Ignoring restart for unknown lobby {lobby_key}")
            return []

        for p in lobby.participants:
            p.reset()
        lobby.winner = None
        lobby.round = 1
        lobby.phase = LobbyPhase.WAITING
        lobby.settle()
        logger.info(f"Lobby {lobby_key} restarted")
        return [broadcast(lobby_key, GAME_RESTARTED)]


def _invalid_code(participant_id: str, what: str) -> Effect:
    return send(participant_id, ERROR, {
        'message': f'{what} must be exactly {CODE_LENGTH} digits.',
        'reason': 'invalid_code',
    })


def _game_over(participant_id: str) -> Effect:
    return send(participant_id, ERROR, {
        'message': 'Game is over. Restart to play again.',
        'reason': 'game_over',
    })
