"""
HTTP clients for the two read-only collaborators.

TrueFinalsClient fetches tournament snapshots; StatsClient looks up NHRL
Statsbook history by bot name. Both convert every transport, status and
decoding failure into the error taxonomy in ``shared.errors`` and never retry.
"""
import logging
from typing import Any, List, Optional

import requests

from shared.errors import AnnotationUnavailable, CollaboratorUnavailable
from shared.schemas import as_int

logger = logging.getLogger(__name__)

USER_AGENT = 'NHRL-Bracket-View/1.0.0'


def normalize_bot_name(bot_name: str) -> str:
    """Statsbook expects underscores where bot names have spaces."""
    return bot_name.replace(' ', '_')


class TrueFinalsClient:
    SERVICE = 'truefinals'

    def __init__(
        self,
        base_url: str,
        api_user_id: str = '',
        api_key: str = '',
        timeout: float = 30.0,
        session: requests.Session = None
    ):
        self.base_url = base_url.rstrip('/')
        self.api_user_id = api_user_id
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, cfg, session: requests.Session = None) -> "TrueFinalsClient":
        return cls(
            base_url=cfg['TRUEFINALS_BASE_URL'],
            api_user_id=cfg.get('TRUEFINALS_API_USER_ID', ''),
            api_key=cfg.get('TRUEFINALS_API_KEY', ''),
            timeout=cfg.get('REQUEST_TIMEOUT', 30.0),
            session=session
        )

    @property
    def headers(self) -> dict:
        return {
            'x-api-user-id': self.api_user_id,
            'x-api-key': self.api_key,
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def _get(self, endpoint: str) -> Any:
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"GET {url}")

        try:
            resp = self.session.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise CollaboratorUnavailable(self.SERVICE, f"Request to {endpoint} failed: {e}")

        if resp.status_code >= 400:
            raise CollaboratorUnavailable(
                self.SERVICE,
                self._error_message(resp),
                status_code=resp.status_code
            )

        try:
            return resp.json()
        except ValueError as e:
            raise CollaboratorUnavailable(self.SERVICE, f"Failed to parse response from {endpoint}: {e}")

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and ('code' in body or 'message' in body):
            return f"API error ({resp.status_code}): {body.get('code', '')} - {body.get('message', '')}"
        return f"HTTP error {resp.status_code}: {resp.text[:500]}"

    # ==================== Snapshots ====================

    def get_tournament(self, tournament_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}")

    def get_players(self, tournament_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/players")

    def get_player(self, tournament_id: str, player_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/players/{player_id}")

    def get_locations(self, tournament_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/locations")

    def get_location(self, tournament_id: str, location_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/locations/{location_id}")

    def get_games(self, tournament_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/games")

    def get_game(self, tournament_id: str, game_id: str) -> Any:
        return self._get(f"/v1/tournaments/{tournament_id}/games/{game_id}")


class StatsClient:
    """
    NHRL Statsbook lookups. A literal ``null`` body means "not found".

    Lookups may run on several threads at once, so each call goes through
    ``requests.get`` rather than a shared session.
    """

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg) -> "StatsClient":
        return cls(
            base_url=cfg['NHRL_STATS_BASE_URL'],
            timeout=cfg.get('REQUEST_TIMEOUT', 30.0)
        )

    def _get(self, endpoint: str, subject: str, params: dict) -> Any:
        url = f"{self.base_url}/{endpoint}"

        try:
            resp = requests.get(
                url,
                params=params,
                headers={'Accept': 'application/json', 'User-Agent': USER_AGENT},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise AnnotationUnavailable(subject, f"Request to {endpoint} failed: {e}")

        if resp.status_code >= 400:
            raise AnnotationUnavailable(
                subject,
                f"HTTP error {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code
            )

        try:
            return resp.json()
        except ValueError as e:
            raise AnnotationUnavailable(subject, f"Failed to parse {endpoint} response: {e}")

    def get_rank(self, bot_name: str) -> Optional[int]:
        data = self._get('get_rank.php', bot_name, {'bot_name': normalize_bot_name(bot_name)})
        if not isinstance(data, dict):
            return None
        return as_int(data.get('ranking'))

    def get_fights(self, bot_name: str) -> List[dict]:
        data = self._get('get_fights.php', bot_name, {'bot_name': normalize_bot_name(bot_name)})
        if not isinstance(data, list):
            return []
        return [f for f in data if isinstance(f, dict)]

    def get_streak_stats(self, bot_name: str) -> Optional[dict]:
        data = self._get('get_streak_stats.php', bot_name, {'bot_name': normalize_bot_name(bot_name)})
        if not isinstance(data, dict):
            return None
        return data

    def get_event_winners(self, weight_class: str) -> List[dict]:
        data = self._get('get_event_winners.php', weight_class, {'weight_class': weight_class})
        if not isinstance(data, list):
            return []
        return [w for w in data if isinstance(w, dict)]
