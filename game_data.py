"""
Spelling Bee puzzle data

Pulls the game data literal out of the NYT Spelling Bee page and turns the
upstream feeds into typed records. Nothing here does I/O.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from errors import ParseFailure


GAME_DATA_ANCHOR = 'window.gameData'

# Scanner states
_NORMAL = 'normal'
_IN_STRING = 'in_string'
_ESCAPED = 'escaped'


def extract_json_object(document: str, anchor: str) -> Optional[str]:
    """
    Return the first balanced JSON object that follows `anchor` in `document`

    Braces are only counted outside string literals, so escaped quotes and
    braces inside strings don't throw the depth off. Scanning stops as soon as
    the object closes, which keeps later script blocks out of the match.

    Returns None if the anchor is missing or the object never closes.
    """
    anchor_at = document.find(anchor)
    if anchor_at == -1:
        return None

    start = document.find('{', anchor_at + len(anchor))
    if start == -1:
        return None

    state = _NORMAL
    depth = 0
    for index in range(start, len(document)):
        char = document[index]

        if state == _ESCAPED:
            state = _IN_STRING
        elif state == _IN_STRING:
            if char == '\\':
                state = _ESCAPED
            elif char == '"':
                state = _NORMAL
        elif char == '"':
            state = _IN_STRING
        elif char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                return document[start:index + 1]

    return None


def _require(data: Dict, key: str, kind, what: str):
    value = data.get(key) if isinstance(data, dict) else None
    # bool is an int subclass, never a valid puzzle field
    if not isinstance(value, kind) or isinstance(value, bool):
        raise ParseFailure(f"Invalid {what}: '{key}' missing or malformed")
    return value


def _require_strings(data: Dict, key: str, what: str) -> List[str]:
    values = _require(data, key, list, what)
    if not all(isinstance(v, str) for v in values):
        raise ParseFailure(f"Invalid {what}: '{key}' must be a list of strings")
    return list(values)


@dataclass(frozen=True)
class PuzzleData:
    """One day's puzzle as the UI consumes it"""
    display_weekday: str
    display_date: str
    print_date: str
    center_letter: str
    outer_letters: List[str]
    valid_letters: List[str]
    pangrams: List[str]
    answers: List[str]
    id: int

    @classmethod
    def from_dict(cls, data: Dict) -> 'PuzzleData':
        what = 'puzzle data'
        return cls(
            display_weekday=_require(data, 'displayWeekday', str, what),
            display_date=_require(data, 'displayDate', str, what),
            print_date=_require(data, 'printDate', str, what),
            center_letter=_require(data, 'centerLetter', str, what),
            outer_letters=_require_strings(data, 'outerLetters', what),
            valid_letters=_require_strings(data, 'validLetters', what),
            pangrams=_require_strings(data, 'pangrams', what),
            answers=_require_strings(data, 'answers', what),
            id=_require(data, 'id', int, what),
        )

    def to_dict(self) -> Dict:
        return {
            'displayWeekday': self.display_weekday,
            'displayDate': self.display_date,
            'printDate': self.print_date,
            'centerLetter': self.center_letter,
            'outerLetters': list(self.outer_letters),
            'validLetters': list(self.valid_letters),
            'pangrams': list(self.pangrams),
            'answers': list(self.answers),
            'id': self.id,
        }


def parse_game_data(html: str) -> Optional[PuzzleData]:
    """
    Parse today's puzzle out of the Spelling Bee page

    The page embeds it as `window.gameData = {"today": {...}, ...}`.
    Returns None when the literal is missing, isn't valid JSON or doesn't
    have the expected shape.
    """
    raw = extract_json_object(html, GAME_DATA_ANCHOR)
    if raw is None:
        return None

    try:
        game_data = json.loads(raw)
    except json.JSONDecodeError:
        return None

    if not isinstance(game_data, dict) or not isinstance(game_data.get('today'), dict):
        return None

    try:
        return PuzzleData.from_dict(game_data['today'])
    except ParseFailure:
        return None


@dataclass(frozen=True)
class ActivePuzzle:
    """Compact puzzle record from the active puzzles feed"""
    id: int
    center_letter: str
    outer_letters: str
    pangrams: List[str]
    answers: List[str]
    print_date: str
    editor: str = ''

    @classmethod
    def from_dict(cls, data: Dict) -> 'ActivePuzzle':
        what = 'active puzzle'
        editor = data.get('editor') if isinstance(data, dict) else None
        return cls(
            id=_require(data, 'id', int, what),
            center_letter=_require(data, 'center_letter', str, what),
            outer_letters=_require(data, 'outer_letters', str, what),
            pangrams=_require_strings(data, 'pangrams', what),
            answers=_require_strings(data, 'answers', what),
            print_date=_require(data, 'print_date', str, what),
            editor=editor if isinstance(editor, str) else '',
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'center_letter': self.center_letter,
            'outer_letters': self.outer_letters,
            'pangrams': list(self.pangrams),
            'answers': list(self.answers),
            'print_date': self.print_date,
            'editor': self.editor,
        }

    def to_puzzle_data(self) -> PuzzleData:
        try:
            day = datetime.strptime(self.print_date, '%Y-%m-%d')
        except ValueError:
            raise ParseFailure(f"Invalid print date '{self.print_date}' for puzzle {self.id}")

        outer = list(self.outer_letters)
        return PuzzleData(
            display_weekday=day.strftime('%A'),
            display_date=f"{day.strftime('%B')} {day.day}, {day.year}",
            print_date=self.print_date,
            center_letter=self.center_letter,
            outer_letters=outer,
            valid_letters=[self.center_letter] + outer,
            pangrams=list(self.pangrams),
            answers=list(self.answers),
            id=self.id,
        )


def _require_indices(data: Dict, key: str) -> List[int]:
    values = _require(data, key, list, 'active puzzles')
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        raise ParseFailure(f"Invalid active puzzles: '{key}' must be a list of indices")
    return list(values)


@dataclass(frozen=True)
class ActivePuzzles:
    """The active puzzles feed; today/yesterday/weeks are indices into `puzzles`"""
    today: int
    yesterday: int
    this_week: List[int]
    last_week: List[int]
    puzzles: List[ActivePuzzle] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'ActivePuzzles':
        what = 'active puzzles'
        puzzles = _require(data, 'puzzles', list, what)
        return cls(
            today=_require(data, 'today', int, what),
            yesterday=_require(data, 'yesterday', int, what),
            this_week=_require_indices(data, 'thisWeek'),
            last_week=_require_indices(data, 'lastWeek'),
            puzzles=[ActivePuzzle.from_dict(p) for p in puzzles],
        )

    def to_dict(self) -> Dict:
        return {
            'today': self.today,
            'yesterday': self.yesterday,
            'thisWeek': list(self.this_week),
            'lastWeek': list(self.last_week),
            'puzzles': [p.to_dict() for p in self.puzzles],
        }

    def find(self, puzzle_id: int) -> Optional[ActivePuzzle]:
        for puzzle in self.puzzles:
            if puzzle.id == puzzle_id:
                return puzzle
        return None


@dataclass(frozen=True)
class PlayerProgress:
    """Words a player has found for one puzzle"""
    puzzle_id: str
    found_words: List[str]

    @classmethod
    def empty(cls, puzzle_id=None) -> 'PlayerProgress':
        return cls(puzzle_id='' if puzzle_id is None else str(puzzle_id), found_words=[])

    @classmethod
    def from_game_state(cls, state: Dict) -> 'PlayerProgress':
        """Build from one game-state record (`{puzzle_id, game_data: {answers}}`)"""
        if not isinstance(state, dict) or 'puzzle_id' not in state:
            raise ParseFailure("Invalid game state: 'puzzle_id' missing")
        game_data = state.get('game_data') or {}
        if not isinstance(game_data, dict):
            raise ParseFailure("Invalid game state: 'game_data' malformed")
        answers = game_data.get('answers') or []
        if not isinstance(answers, list) or not all(isinstance(w, str) for w in answers):
            raise ParseFailure("Invalid game state: 'answers' must be a list of strings")
        return cls(puzzle_id=str(state['puzzle_id']), found_words=list(answers))

    def to_dict(self) -> Dict:
        return {
            'responseId': self.puzzle_id,
            'puzzleVersion': self.puzzle_id,
            'foundWords': list(self.found_words),
        }


@dataclass(frozen=True)
class PuzzleStats:
    """How many players found each word; n is the sample size"""
    id: int
    answers: Dict[str, int]
    sample_size: int
    total_players: int

    @classmethod
    def from_dict(cls, data: Dict) -> 'PuzzleStats':
        what = 'puzzle stats'
        answers = _require(data, 'answers', dict, what)
        if not all(isinstance(k, str) and isinstance(v, int) for k, v in answers.items()):
            raise ParseFailure("Invalid puzzle stats: 'answers' must map words to counts")
        return cls(
            id=_require(data, 'id', int, what),
            answers=dict(answers),
            sample_size=_require(data, 'n', int, what),
            total_players=_require(data, 'numberOfUsers', int, what),
        )

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'answers': dict(self.answers),
            'n': self.sample_size,
            'numberOfUsers': self.total_players,
        }
