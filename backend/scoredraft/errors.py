"""Domain errors raised by the mini-game services.

Each error knows the HTTP status it maps to and a short machine-readable
code, so routes can let them propagate and the app-level error handler
renders ``{"error": ..., "code": ...}``.
"""


class GameError(Exception):
    status_code = 400
    code = 'GAME_ERROR'

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or self.__class__.__doc__ or self.code

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class ValidationError(GameError):
    """Invalid input"""
    status_code = 400
    code = 'VALIDATION_ERROR'


class PermissionDenied(GameError):
    """Not allowed"""
    status_code = 403
    code = 'PERMISSION_DENIED'


class NotLeader(PermissionDenied):
    """Only the room leader may do this"""
    code = 'NOT_LEADER'


class NotAMember(PermissionDenied):
    """You are not a member of this room"""
    code = 'NOT_A_MEMBER'


class NotFoundError(GameError):
    """Not found"""
    status_code = 404
    code = 'NOT_FOUND'


class StateConflictError(GameError):
    """Action not allowed in the current state"""
    status_code = 409
    code = 'STATE_CONFLICT'


class WrongPhase(StateConflictError):
    """Game is not in the right phase for this action"""
    code = 'WRONG_PHASE'


class DraftComplete(StateConflictError):
    """Draft already complete"""
    code = 'DRAFT_COMPLETE'


class NotYourTurn(StateConflictError):
    """Not your turn"""
    code = 'NOT_YOUR_TURN'


class ScoreTaken(StateConflictError):
    """Score already taken for this fixture"""
    code = 'SCORE_TAKEN'


class AlreadyPicked(StateConflictError):
    """You already picked this fixture"""
    code = 'ALREADY_PICKED'


class InvalidGoldenReference(StateConflictError):
    """Golden must be one of your own picks"""
    code = 'INVALID_GOLDEN_REFERENCE'


class AlreadyLocked(StateConflictError):
    """Golden already locked"""
    code = 'ALREADY_LOCKED'


class AlreadyStarted(StateConflictError):
    """Game already started"""
    code = 'ALREADY_STARTED'


class NotEnoughPlayers(StateConflictError):
    """Not enough players in lobby"""
    code = 'NOT_ENOUGH_PLAYERS'


class NoFixtures(StateConflictError):
    """No fixtures for this gameweek"""
    code = 'NO_FIXTURES'


class RoomExists(StateConflictError):
    """Room code already used"""
    code = 'ROOM_EXISTS'


class MissingPlayersOrFixtures(StateConflictError):
    """Missing players/fixtures"""
    code = 'MISSING_PLAYERS_OR_FIXTURES'


class UpstreamError(GameError):
    """Fixtures provider unavailable"""
    status_code = 502
    code = 'UPSTREAM_ERROR'


class TransientStoreError(GameError):
    """Temporarily unavailable, please retry"""
    status_code = 503
    code = 'TEMPORARILY_UNAVAILABLE'
