"""
Hint Generation for Spelling Bee answers

Asks Claude for one crossword-style clue per answer word and organizes the
clues by two-letter prefix. A reply that can't be parsed never fails the
request: every word falls back to a "<N>-letter word" clue instead.
"""

import json
from datetime import datetime, timezone
from typing import Dict, List

from game_data import PuzzleData
from upstream_client import AnthropicClient


# Bump when the cached hint shape changes so old entries are never served
CACHE_KEY_VERSION = 'v2'


def build_cache_key(print_date: str) -> str:
    """Cache key for a puzzle date, e.g. hints:v2:2026-01-14"""
    return f"hints:{CACHE_KEY_VERSION}:{print_date}"


def fallback_hint(word: str) -> str:
    return f"{len(word)}-letter word"


def build_hint_prompt(words: List[str], pangrams: List[str]) -> str:
    pangram_set = set(pangrams)
    words_list = '\n'.join(
        f"{word} (pangram)" if word in pangram_set else word for word in words
    )

    return f"""You are a cryptic crossword clue writer generating hints for an NYT Spelling Bee puzzle. Write subtle, crossword-style clues - the kind that require a small mental leap to solve.

Guidelines for clues:
- Each clue should be 3-10 words
- Write oblique, indirect clues in the style of crossword puzzles - NOT simple definitions or synonyms
- Use misdirection, double meanings, oblique references, or lateral associations
- NEVER use a close synonym as the entire clue (e.g. don't clue HAPPY as "Joyful" - too direct)
- Instead, reference a context, situation, or association (e.g. HAPPY -> "What seven dwarfs might feel after work")
- Don't include any part of the answer word in the clue
- For pangrams, the clue can be slightly longer or more layered
- Keep clues fun and fair - tricky but not impossibly obscure

Words to generate clues for:
{words_list}

Respond with ONLY a JSON object in this exact format (no markdown, no extra text):
{{
  "hints": {{
    "WORD": "clue text here"
  }}
}}

Include every word from the list above as a key in the hints object."""


def first_text_block(response: Dict) -> str:
    content = response.get('content') if isinstance(response, dict) else None
    if not content or not isinstance(content, list):
        return ''
    first = content[0]
    if isinstance(first, dict) and first.get('type') == 'text':
        return first.get('text') or ''
    return ''


def parse_hints_reply(text: str, words: List[str]) -> Dict[str, str]:
    """
    Decode Claude's reply into a word -> clue mapping

    Accepts `{"hints": {...}}` or a bare `{WORD: clue}` object, optionally
    wrapped in a markdown code fence. Anything else yields fallback clues.
    """
    json_text = text.strip()
    if json_text.startswith('```'):
        json_text = json_text[3:]
        if json_text.startswith('json'):
            json_text = json_text[4:]
        if json_text.rstrip().endswith('```'):
            json_text = json_text.rstrip()[:-3]

    try:
        parsed = json.loads(json_text.strip())
    except json.JSONDecodeError:
        print(f"      Claude API: failed to parse hints reply: {text[:200]!r}")
        return {word: fallback_hint(word) for word in words}

    if isinstance(parsed, dict) and isinstance(parsed.get('hints'), dict):
        parsed = parsed['hints']
    if not isinstance(parsed, dict):
        print(f"      Claude API: hints reply was not an object: {text[:200]!r}")
        return {word: fallback_hint(word) for word in words}

    return {str(k): v for k, v in parsed.items() if isinstance(v, str) and v.strip()}


def organize_hints(words: List[str], clues: Dict[str, str]) -> Dict[str, List[Dict]]:
    """Group words by uppercase two-letter prefix, shortest words first"""
    by_prefix = {}
    for word in words:
        hint = (clues.get(word)
                or clues.get(word.upper())
                or clues.get(word.lower())
                or fallback_hint(word))
        by_prefix.setdefault(word[:2].upper(), []).append({
            'word': word.upper(),
            'hint': hint,
            'length': len(word),
        })

    for entries in by_prefix.values():
        entries.sort(key=lambda entry: entry['length'])
    return by_prefix


class HintGenerator:
    """Generate cacheable hint tables with Claude"""

    def __init__(self, client: AnthropicClient):
        self.client = client

    def generate(self, puzzle: PuzzleData, api_key: str) -> Dict:
        """
        Build the hint table for every answer in `puzzle`

        Returns `{"generatedAt": iso timestamp, "hints": {prefix: [...]}}`.
        Only a failed API call raises (UpstreamError); a malformed reply
        just degrades to fallback clues.
        """
        words = list(dict.fromkeys(puzzle.answers))
        print(f"      Claude API: generating hints for {puzzle.print_date} ({len(words)} words)")

        prompt = build_hint_prompt(words, puzzle.pangrams)
        response = self.client.create_message(prompt, api_key)
        clues = parse_hints_reply(first_text_block(response), words)

        return {
            'generatedAt': datetime.now(timezone.utc).isoformat(),
            'hints': organize_hints(words, clues),
        }
