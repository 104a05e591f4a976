"""Shared test fixtures. Outbound HTTP is mocked; the hint cache lives in memory."""
import json
from unittest.mock import MagicMock

import pytest

from config import Settings
from production_app import create_app


PUZZLE_HTML = '''
<html>
<head>
  <script>
    window.gameData = {
      "today": {
        "displayWeekday": "Wednesday",
        "displayDate": "January 14, 2026",
        "printDate": "2026-01-14",
        "centerLetter": "o",
        "outerLetters": ["a", "b", "c", "e", "l", "p"],
        "validLetters": ["o", "a", "b", "c", "e", "l", "p"],
        "pangrams": ["placebo"],
        "answers": ["able", "ball", "call", "placebo"],
        "id": 20035
      },
      "yesterday": {"printDate": "2026-01-13"}
    };
  </script>
  <script>
    window.otherConfig = {"applicationId": "some-id"}
  </script>
</head>
</html>
'''

ACTIVE_PUZZLES = {
    'today': 0,
    'yesterday': 1,
    'thisWeek': [0, 1],
    'lastWeek': [2],
    'puzzles': [
        {'id': 20035, 'center_letter': 'o', 'outer_letters': 'abcelp',
         'pangrams': ['placebo'], 'answers': ['able', 'ball', 'call', 'placebo'],
         'print_date': '2026-01-14', 'editor': 'Sam Ezersky'},
        {'id': 20034, 'center_letter': 'z', 'outer_letters': 'abcelr',
         'pangrams': [], 'answers': ['zebra', 'zeal'],
         'print_date': '2026-01-13', 'editor': 'Sam Ezersky'},
        {'id': 20030, 'center_letter': 'a', 'outer_letters': 'bcdefg',
         'pangrams': ['abcdefg'], 'answers': ['bad', 'fad', 'abcdefg'],
         'print_date': '2026-01-08', 'editor': 'Sam Ezersky'},
    ],
}


class MemoryHintCache:
    """In-memory stand-in for HintCache"""

    def __init__(self):
        self.entries = {}
        self.puts = []

    def get(self, key):
        return self.entries.get(key)

    def put(self, key, value, ttl_seconds):
        self.puts.append((key, ttl_seconds))
        self.entries[key] = value

    def purge_expired(self):
        return 0


def _make_response(status=200, json_data=None, text=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if json_data is not None:
        resp.json.return_value = json_data
        resp.text = json.dumps(json_data) if text is None else text
    else:
        resp.json.side_effect = ValueError('No JSON object could be decoded')
        resp.text = text or ''
    return resp


@pytest.fixture
def make_response():
    return _make_response


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def hint_cache():
    return MemoryHintCache()


@pytest.fixture
def app(settings, hint_cache):
    flask_app = create_app(settings, hint_cache=hint_cache)
    flask_app.config['TESTING'] = True
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def nyt_client(app):
    return app.extensions['nyt_client']


@pytest.fixture
def puzzle_html():
    return PUZZLE_HTML


@pytest.fixture
def active_puzzles():
    return json.loads(json.dumps(ACTIVE_PUZZLES))
