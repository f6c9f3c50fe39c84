import json
import re
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from flask import current_app

from scoredraft import db
from scoredraft.errors import MissingPlayersOrFixtures
from scoredraft.models import GameSession, GoldenLock, Pick, ScoreRecord, utcnow
from .lifecycle import get_session
from scoredraft.services.store import run_transaction

_SCORE_RE = re.compile(r'^(\d{1,3})\s*-\s*(\d{1,3})$')


def parse_score(s: Optional[str]) -> Optional[Tuple[int, int]]:
    if not s:
        return None
    m = _SCORE_RE.match(str(s).strip())
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def outcome(home: int, away: int) -> str:
    if home > away:
        return 'H'
    if home < away:
        return 'A'
    return 'D'


def base_points(predicted: Optional[str], actual: Optional[str]) -> int:
    """2 for the exact score, 1 for the right result (H/A/D), else 0."""
    p = parse_score(predicted)
    r = parse_score(actual)
    if not p or not r:
        return 0
    if p == r:
        return 2
    if outcome(*p) == outcome(*r):
        return 1
    return 0


def awarded_points(predicted: Optional[str], actual: Optional[str], is_golden: bool) -> int:
    return base_points(predicted, actual) * (2 if is_golden else 1)


def compute_scores(
    players: Sequence[str],
    fixture_ids: Sequence[int],
    picks: Mapping[Tuple[str, int], str],
    golden: Mapping[str, int],
    results: Mapping[int, str],
) -> Dict[str, Dict[str, Any]]:
    """Full score sheet for every player.

    ``picks`` maps (uid, fixture_id) -> predicted score, ``golden`` maps uid
    -> fixture id of that player's *locked* golden pick, ``results`` maps
    fixture id -> actual score for finished fixtures only. Fixtures with no
    result are skipped for everyone.
    """
    sheets: Dict[str, Dict[str, Any]] = {}
    for uid in players:
        total = 0
        breakdown: Dict[str, Dict[str, Any]] = {}
        golden_fixture = golden.get(uid)
        for fid in fixture_ids:
            actual = results.get(fid)
            if not actual:
                continue
            predicted = picks.get((uid, fid))
            is_golden = golden_fixture == fid
            base = base_points(predicted, actual)
            pts = awarded_points(predicted, actual, is_golden)
            total += pts
            breakdown[str(fid)] = {
                'predicted': predicted,
                'actual': actual,
                'base_points': base,
                'is_golden': is_golden,
                'awarded_points': pts,
            }
        sheets[uid] = {'points': total, 'breakdown': breakdown}
    return sheets


def recalculate(session: GameSession, results: Mapping[int, str]) -> int:
    """Recompute and overwrite every player's ScoreRecord for ``session``.

    Safe to call repeatedly; returns the number of players scored.
    """
    players = session.players
    fixture_ids = session.fixtures
    if not players or not fixture_ids:
        raise MissingPlayersOrFixtures('Missing players/fixtures')
    if not results:
        current_app.logger.info(f"[score] session={session.id} no finished results yet")
        return 0
    session_id = session.id

    def work():
        picks = {(p.uid, p.fixture_id): p.score for p in Pick.query.filter_by(session_id=session_id).all()}
        golden = {
            g.uid: g.fixture_id
            for g in GoldenLock.query.filter_by(session_id=session_id, locked=True).all()
        }
        sheets = compute_scores(players, fixture_ids, picks, golden, results)
        existing = {r.uid: r for r in ScoreRecord.query.filter_by(session_id=session_id).all()}
        now = utcnow()
        for uid, sheet in sheets.items():
            record = existing.get(uid)
            if record is None:
                record = ScoreRecord(session_id=session_id, uid=uid)
                db.session.add(record)
            record.points = sheet['points']
            record.breakdown = json.dumps(sheet['breakdown'], sort_keys=True)
            record.computed_at = now
        return len(sheets)

    scored = run_transaction(work, label=f'score session={session_id}')
    current_app.logger.info(f"[score] session={session_id} scored={scored} results={len(results)}")
    return scored


def recalculate_session(room_code: str, gameweek: int) -> int:
    """Fetch the latest results for the gameweek and rescore the room's session."""
    session = get_session(room_code, gameweek)
    if not session.players or not session.fixtures:
        raise MissingPlayersOrFixtures('Missing players/fixtures')
    provider = current_app.extensions['football_data']
    results = provider.results(gameweek)
    return recalculate(session, results)
