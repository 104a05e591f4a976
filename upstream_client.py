"""
Upstream clients

NytClient talks to the NYT Spelling Bee page and its undocumented feeds,
AnthropicClient to the Anthropic messages API. One call per method, no retries.
Failures come back as UpstreamError carrying the upstream status; deciding what
the gateway answers is left to the routes.
"""

from typing import Dict, Optional

import requests

from config import Settings
from errors import ParseFailure
from game_data import ActivePuzzles, PlayerProgress, PuzzleStats


BROWSER_USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36'
)

PUZZLE_PAGE_PATH = '/puzzles/spelling-bee'
ACTIVE_PUZZLES_PATH = '/svc/spelling-bee/v1/active.json'
LATEST_GAME_STATE_PATH = '/svc/games/state/spelling_bee/latest'
PUZZLE_GAME_STATE_PATH = '/svc/games/state/spelling_bee/latests'
PUZZLE_STATS_PATH = '/svc/spelling-bee/v1/game/{puzzle_id}/stats.json'

ANTHROPIC_VERSION = '2023-06-01'


class UpstreamError(Exception):
    """An upstream call failed; status_code is None when no response arrived"""

    def __init__(self, resource: str, status_code: Optional[int] = None, detail: str = ''):
        self.resource = resource
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            message = f"{resource} request failed: {detail}"
        else:
            message = f"{resource} returned status {status_code}"
        super().__init__(message)


def _parse_json(resource: str, response) -> Dict:
    try:
        return response.json()
    except ValueError:
        raise ParseFailure(f"Invalid JSON from {resource}")


class NytClient:
    """Fetches puzzle, player and stats data from the NYT"""

    def __init__(self, settings: Settings):
        self.base_url = settings.nyt_base_url
        self.timeout = settings.upstream_timeout
        self.session = requests.Session()
        # The puzzle page rejects clients that don't look like a browser
        self.session.headers.update({
            'User-Agent': BROWSER_USER_AGENT,
            'Accept-Language': 'en-US,en;q=0.9',
        })

    def _get(self, resource: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            print(f"      {resource}: request failed ({e.__class__.__name__})")
            raise UpstreamError(resource, None, str(e))

        if not response.ok:
            print(f"      {resource}: status {response.status_code}")
            raise UpstreamError(resource, response.status_code, response.text[:200])
        return response

    def fetch_puzzle_page(self) -> str:
        """Raw HTML of today's Spelling Bee page"""
        response = self._get('puzzle page', PUZZLE_PAGE_PATH,
                             headers={'Accept': 'text/html,application/xhtml+xml'})
        return response.text

    def fetch_active_puzzles(self) -> ActivePuzzles:
        response = self._get('active puzzles', ACTIVE_PUZZLES_PATH)
        return ActivePuzzles.from_dict(_parse_json('active puzzles', response))

    def fetch_game_state(self, nyt_token: str, puzzle_id: int = None) -> Optional[PlayerProgress]:
        """
        The player's found words, authenticated with their NYT-S cookie

        Without a puzzle id this is the latest puzzle the player touched.
        Returns None when the feed has no state for the requested puzzle.
        """
        cookies = {'NYT-S': nyt_token}
        if puzzle_id is None:
            response = self._get('game state', LATEST_GAME_STATE_PATH, cookies=cookies)
            return PlayerProgress.from_game_state(_parse_json('game state', response))

        response = self._get('game state', PUZZLE_GAME_STATE_PATH,
                             params={'puzzle_ids': puzzle_id}, cookies=cookies)
        payload = _parse_json('game state', response)
        states = payload.get('states') if isinstance(payload, dict) else None
        if not isinstance(states, list):
            raise ParseFailure("Invalid game state: 'states' missing")

        for state in states:
            if isinstance(state, dict) and str(state.get('puzzle_id')) == str(puzzle_id):
                return PlayerProgress.from_game_state(state)
        return None

    def fetch_puzzle_stats(self, puzzle_id: int) -> PuzzleStats:
        response = self._get('puzzle stats', PUZZLE_STATS_PATH.format(puzzle_id=puzzle_id))
        return PuzzleStats.from_dict(_parse_json('puzzle stats', response))


class AnthropicClient:
    """Minimal client for the Anthropic messages API"""

    def __init__(self, settings: Settings):
        self.api_url = settings.anthropic_api_url
        self.model = settings.anthropic_model
        self.max_tokens = settings.anthropic_max_tokens
        self.timeout = settings.anthropic_timeout

    def create_message(self, prompt: str, api_key: str) -> Dict:
        """Send a single-turn prompt and return the decoded response body"""
        try:
            response = requests.post(
                self.api_url,
                headers={
                    'Content-Type': 'application/json',
                    'x-api-key': api_key,
                    'anthropic-version': ANTHROPIC_VERSION,
                },
                json={
                    'model': self.model,
                    'max_tokens': self.max_tokens,
                    'messages': [{'role': 'user', 'content': prompt}],
                },
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            print(f"      Claude API: request failed ({e.__class__.__name__})")
            raise UpstreamError('Anthropic API', None, str(e))

        if response.status_code != 200:
            print(f"      Claude API error: Status {response.status_code} - {response.text[:200]}")
            raise UpstreamError('Anthropic API', response.status_code, response.text[:200])

        try:
            return response.json()
        except ValueError:
            raise UpstreamError('Anthropic API', response.status_code, 'response was not JSON')
