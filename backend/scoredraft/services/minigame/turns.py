from typing import List, NamedTuple, Optional, Sequence


class TurnSlot(NamedTuple):
    turn: int
    fixture_index: int
    fixture_id: int
    player_index: int
    player: str


def total_turns(players: Sequence[str], fixture_ids: Sequence[int]) -> int:
    return len(players) * len(fixture_ids)


def turn_slot(players: Sequence[str], fixture_ids: Sequence[int], turn: int) -> Optional[TurnSlot]:
    """Who drafts which fixture on ``turn`` (0-indexed).

    Fixtures are drafted one at a time. The starting player rotates by one
    seat per fixture: with players [A, B, C] fixture 0 goes A B C, fixture 1
    goes B C A, fixture 2 goes C A B. Returns None once the draft is over.
    """
    if turn < 0:
        raise ValueError(f'turn must be >= 0, got {turn}')
    if not players or not fixture_ids:
        return None
    p = len(players)
    fixture_index = turn // p
    if fixture_index >= len(fixture_ids):
        return None
    turn_in_fixture = turn % p
    rotated_index = (turn_in_fixture + fixture_index) % p
    return TurnSlot(
        turn=turn,
        fixture_index=fixture_index,
        fixture_id=fixture_ids[fixture_index],
        player_index=rotated_index,
        player=players[rotated_index],
    )


def draft_schedule(players: Sequence[str], fixture_ids: Sequence[int]) -> List[TurnSlot]:
    return [turn_slot(players, fixture_ids, t) for t in range(total_turns(players, fixture_ids))]
