import re

from scoredraft.errors import ValidationError

ROOM_CODE_RE = re.compile(r'^[A-Z0-9]{4,8}$')


def room_code(value) -> str:
    rc = str(value or '').strip().upper()
    if not ROOM_CODE_RE.match(rc):
        raise ValidationError('Bad roomCode')
    return rc


def _whole_number(value) -> int:
    # JSON floats (1.9) and booleans must not be truncated into ids
    if isinstance(value, bool):
        raise ValueError(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(value)
        return int(value)
    return int(str(value).strip())


def gameweek(value) -> int:
    try:
        gw = _whole_number(value)
    except (TypeError, ValueError):
        raise ValidationError('Bad gw')
    if gw < 1 or gw > 38:
        raise ValidationError('Bad gw')
    return gw


def uid(value, field='uid') -> str:
    u = str(value or '').strip()
    if not u:
        raise ValidationError(f'Missing {field}')
    return u


def fixture_id(value) -> int:
    try:
        return _whole_number(value)
    except (TypeError, ValueError):
        raise ValidationError('Bad fixtureId')


def display_name(value) -> str:
    name = str(value or '').strip()
    return name[:64] or 'Player'
