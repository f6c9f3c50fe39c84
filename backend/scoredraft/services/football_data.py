"""football-data.org client: fixtures, finished results and the current gameweek."""
import time
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import requests
from flask import current_app, has_app_context

from scoredraft.errors import UpstreamError

EXPECTED_MATCHES_PER_GW = 10
FIRST_GW = 1
LAST_GW = 38


def _log(level: str, msg: str) -> None:
    if has_app_context():
        getattr(current_app.logger, level)(msg)


def fixture_from_match(match: Dict[str, Any]) -> Dict[str, Any]:
    full_time = (match.get('score') or {}).get('fullTime') or {}
    home_ft = full_time.get('home')
    away_ft = full_time.get('away')
    has_ft = isinstance(home_ft, int) and isinstance(away_ft, int) and match.get('status') == 'FINISHED'
    home = match.get('homeTeam') or {}
    away = match.get('awayTeam') or {}
    return {
        'fixture_id': match.get('id'),
        'gameweek': match.get('matchday'),
        'kickoff': match.get('utcDate'),
        'venue': match.get('venue') or 'TBD',
        'status': match.get('status'),
        'home': {'id': home.get('id'), 'name': home.get('name')},
        'away': {'id': away.get('id'), 'name': away.get('name')},
        'result': f'{home_ft}-{away_ft}' if has_ft else None,
        'result_ft': {'home': home_ft, 'away': away_ft} if has_ft else None,
    }


def current_gameweek_from_matches(matches: List[Dict[str, Any]], expected_per_gw: int = EXPECTED_MATCHES_PER_GW) -> int:
    """First matchday that is not fully finished, clamped to 1..38.

    A matchday counts as done only with at least ``expected_per_gw`` matches
    all finished; postponements or partial data keep it open. If everything
    seen is done, the next matchday after the last one is current.
    """
    by_md: Dict[int, Dict[str, int]] = {}
    for m in matches:
        md = m.get('matchday')
        if not isinstance(md, int):
            continue
        entry = by_md.setdefault(md, {'total': 0, 'finished': 0})
        entry['total'] += 1
        if m.get('status') == 'FINISHED':
            entry['finished'] += 1

    next_open = None
    for md in sorted(by_md):
        total, finished = by_md[md]['total'], by_md[md]['finished']
        if finished < total:
            next_open = md
            break
        if total >= expected_per_gw and finished >= expected_per_gw:
            continue
        next_open = md
        break

    if next_open is None:
        next_open = (max(by_md) if by_md else 0) + 1
    return min(LAST_GW, max(FIRST_GW, next_open))


class FootballDataClient:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = 'https://api.football-data.org/v4',
        competition: str = 'PL',
        season: int = 2025,
        timeout: float = 15.0,
        max_retries: int = 2,
        backoff: float = 0.8,
        http=None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.competition = competition
        self.season = season
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self.http = http or requests.Session()

    @classmethod
    def from_config(cls, config) -> 'FootballDataClient':
        return cls(
            api_key=config.get('FOOTBALL_DATA_API_KEY'),
            base_url=config.get('FOOTBALL_DATA_BASE_URL', 'https://api.football-data.org/v4'),
            competition=config.get('FOOTBALL_DATA_COMPETITION', 'PL'),
            season=int(config.get('FOOTBALL_DATA_SEASON', 2025)),
            timeout=float(config.get('FOOTBALL_DATA_TIMEOUT_SEC', 15)),
            max_retries=int(config.get('FOOTBALL_DATA_MAX_RETRIES', 2)),
            backoff=float(config.get('FOOTBALL_DATA_BACKOFF_SEC', 0.8)),
        )

    def _get(self, path: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """GET a JSON document; None means the upstream has nothing published (400/404)."""
        if not self.api_key:
            raise UpstreamError('API key not configured')
        url = f'{self.base_url}{path}'
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self.http.get(url, headers={'X-Auth-Token': self.api_key}, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                if attempt > self.max_retries:
                    _log('error', f"[upstream] {path} failed after {attempt} attempts: {e}")
                    raise UpstreamError('Upstream fetch failed') from e
                _log('warning', f"[upstream] {path} attempt={attempt} error={e}")
                time.sleep(self.backoff * attempt)
                continue

            if resp.status_code == 429 and attempt <= self.max_retries:
                try:
                    retry_after = float(resp.headers.get('Retry-After', self.backoff))
                except (TypeError, ValueError):
                    retry_after = self.backoff
                _log('warning', f"[upstream] {path} rate limited, retry in {retry_after}s")
                time.sleep(min(retry_after, self.backoff * attempt))
                continue
            if resp.status_code in (400, 404):
                return None
            if not resp.ok:
                _log('error', f"[upstream] {path} status={resp.status_code} body={resp.text[:300]}")
                raise UpstreamError(f'Football API error ({resp.status_code})')
            return resp.json()

    def matches(self, gameweek: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {'season': self.season}
        if gameweek is not None:
            params['matchday'] = gameweek
        data = self._get(f'/competitions/{self.competition}/matches', params)
        return list((data or {}).get('matches') or [])

    def fixtures(self, gameweek: int) -> List[Dict[str, Any]]:
        return [fixture_from_match(m) for m in self.matches(gameweek)]

    def fixture_ids(self, gameweek: int) -> List[int]:
        return [f['fixture_id'] for f in self.fixtures(gameweek) if isinstance(f['fixture_id'], int)]

    def results(self, gameweek: int) -> Dict[int, str]:
        """fixture id -> "H-A" for finished fixtures only."""
        return {
            f['fixture_id']: f['result']
            for f in self.fixtures(gameweek)
            if isinstance(f['fixture_id'], int) and f['result']
        }

    def current_gameweek(self, today: Optional[date] = None) -> int:
        today = today or date.today()
        params = {
            'dateFrom': (today - timedelta(days=21)).isoformat(),
            'dateTo': (today + timedelta(days=35)).isoformat(),
        }
        data = self._get(f'/competitions/{self.competition}/matches', params)
        return current_gameweek_from_matches(list((data or {}).get('matches') or []))
