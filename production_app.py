"""
Spelling Bee Buddy - Production Backend
========================================

Flask gateway between the Spelling Bee Buddy UI and its upstreams:
- NYT Spelling Bee page and feeds (puzzle, active puzzles, progress, stats)
- Anthropic API for hint generation, cached in PostgreSQL

Every response is a JSON envelope: {"success": true, "data": ...} or
{"success": false, "error": "..."}.

Run with: gunicorn production_app:app
"""

import traceback

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Settings
from errors import (BuddyError, CacheUnavailable, GenerationFailure, MissingCredential,
                    ParseFailure, RouteNotFound, UpstreamAuthRejected, UpstreamNotFound,
                    UpstreamUnavailable)
from game_data import PlayerProgress, PuzzleData, parse_game_data
from hint_cache import HintCache, get_or_generate_hints
from hint_generator import HintGenerator
from upstream_client import AnthropicClient, NytClient, UpstreamError


NYT_TOKEN_HEADER = 'X-NYT-Token'
ANTHROPIC_KEY_HEADER = 'X-Anthropic-Key'

CORS_METHODS = ['GET', 'POST', 'OPTIONS']
CORS_HEADERS = ['Content-Type', NYT_TOKEN_HEADER, 'X-NYT-Subscriber-ID', ANTHROPIC_KEY_HEADER]
CORS_MAX_AGE = 86400

CORS_RESPONSE_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': ', '.join(CORS_METHODS),
    'Access-Control-Allow-Headers': ', '.join(CORS_HEADERS),
    'Access-Control-Max-Age': str(CORS_MAX_AGE),
}


def success_response(data, status: int = 200):
    return jsonify({'success': True, 'data': data}), status


def error_response(message: str, status: int = 500):
    return jsonify({'success': False, 'error': message}), status


def header_required(header):
    """Decorator that rejects the request before any upstream call if `header` is missing"""
    def decorator(f):
        def decorated_function(*args, **kwargs):
            value = request.headers.get(header)
            if not value:
                raise MissingCredential(f'Missing {header} header')
            return f(value, *args, **kwargs)
        decorated_function.__name__ = f.__name__
        return decorated_function
    return decorator


def optional_puzzle_id():
    """The `puzzleId` query parameter as an int, or None"""
    raw = request.args.get('puzzleId')
    if raw is None or raw == '':
        return None
    try:
        return int(raw)
    except ValueError:
        raise BuddyError(f"Invalid puzzleId '{raw}'", 400)


def describe_failure(error: UpstreamError) -> str:
    if error.status_code is None:
        return 'no response'
    return f'status {error.status_code}'


def create_app(settings: Settings = None, hint_cache=None) -> Flask:
    """
    Build the gateway app

    Clients are created from `settings` here, once. `hint_cache` overrides the
    PostgreSQL cache; without either it or DATABASE_URL, /hints reports the
    cache as unavailable.
    """
    if settings is None:
        settings = Settings.from_env()

    app = Flask(__name__)
    app.json.sort_keys = False

    CORS(app,
         resources={r'/*': {'origins': '*'}},
         send_wildcard=True,
         methods=CORS_METHODS,
         allow_headers=CORS_HEADERS,
         max_age=CORS_MAX_AGE)

    nyt = NytClient(settings)
    anthropic = AnthropicClient(settings)
    generator = HintGenerator(anthropic)
    if hint_cache is None and settings.database_url:
        hint_cache = HintCache(settings.database_url)

    app.extensions['nyt_client'] = nyt
    app.extensions['anthropic_client'] = anthropic
    app.extensions['hint_cache'] = hint_cache

    # ========================================================================
    # ENVELOPE & ERRORS
    # ========================================================================

    @app.before_request
    def handle_preflight():
        """Answer CORS preflight for any path with an empty 204"""
        if request.method == 'OPTIONS':
            return app.response_class(status=204, mimetype='application/json')

    @app.after_request
    def add_cors_headers(response):
        """The same fixed CORS headers on every response, errors and preflight included"""
        response.headers.update(CORS_RESPONSE_HEADERS)
        return response

    @app.errorhandler(BuddyError)
    def handle_buddy_error(error):
        if not isinstance(error, RouteNotFound):
            print(f"{request.method} {request.path} failed ({error.status_code}): {error.message}")
        return error_response(error.message, error.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        if error.code == 404:
            return handle_buddy_error(RouteNotFound('Not found'))
        if error.code == 405:
            return error_response('Method not allowed', 405)
        return error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        print(f"Error in {request.method} {request.path}: {error}")
        traceback.print_exc()
        return error_response('Internal server error', 500)

    # ========================================================================
    # PUZZLE LOOKUP
    # ========================================================================

    def load_puzzle(puzzle_id=None) -> PuzzleData:
        """Today's puzzle from the page, or a specific one from the active feed"""
        if puzzle_id is None:
            try:
                html = nyt.fetch_puzzle_page()
            except UpstreamError as e:
                raise UpstreamUnavailable(f'Failed to fetch puzzle page ({describe_failure(e)})')

            puzzle = parse_game_data(html)
            if puzzle is None:
                raise ParseFailure('Could not parse puzzle data from page')
            return puzzle

        active = load_active_puzzles()
        selected = active.find(puzzle_id)
        if selected is None:
            raise UpstreamNotFound(f'Puzzle {puzzle_id} not found in active puzzles')
        return selected.to_puzzle_data()

    def load_active_puzzles():
        try:
            return nyt.fetch_active_puzzles()
        except UpstreamError as e:
            raise UpstreamUnavailable(f'Failed to fetch active puzzles ({describe_failure(e)})')

    # ========================================================================
    # ROUTES
    # ========================================================================

    @app.route('/puzzle')
    def get_puzzle():
        """Puzzle data, scraped from today's page unless puzzleId is given"""
        return success_response(load_puzzle(optional_puzzle_id()).to_dict())

    @app.route('/active')
    def get_active_puzzles():
        """This week's and last week's puzzles"""
        return success_response(load_active_puzzles().to_dict())

    @app.route('/stats/<int:puzzle_id>')
    def get_puzzle_stats(puzzle_id):
        """How many players found each word of a puzzle"""
        try:
            stats = nyt.fetch_puzzle_stats(puzzle_id)
        except UpstreamError as e:
            if e.status_code == 404:
                raise UpstreamNotFound(f'Stats not available for puzzle {puzzle_id}')
            raise UpstreamUnavailable(
                f'Failed to fetch stats for puzzle {puzzle_id} ({describe_failure(e)})')
        return success_response(stats.to_dict())

    @app.route('/progress')
    @header_required(NYT_TOKEN_HEADER)
    def get_progress(nyt_token):
        """The caller's found words; no progress yet is an empty list, not an error"""
        puzzle_id = optional_puzzle_id()
        try:
            progress = nyt.fetch_game_state(nyt_token, puzzle_id)
        except UpstreamError as e:
            if e.status_code in (401, 403):
                raise UpstreamAuthRejected('Invalid or expired NYT token')
            if e.status_code != 404:
                raise UpstreamUnavailable(f'Failed to fetch user progress ({describe_failure(e)})')
            progress = None

        if progress is None:
            progress = PlayerProgress.empty(puzzle_id)
        return success_response(progress.to_dict())

    @app.route('/hints')
    @header_required(ANTHROPIC_KEY_HEADER)
    def get_hints(anthropic_key):
        """AI hints for the puzzle, generated once per puzzle date and cached"""
        if hint_cache is None:
            raise CacheUnavailable('Hint cache not configured')

        puzzle = load_puzzle(optional_puzzle_id())
        try:
            hints = get_or_generate_hints(hint_cache, generator, puzzle, anthropic_key,
                                          settings.hints_cache_ttl_seconds)
        except UpstreamError as e:
            if e.status_code in (401, 403):
                raise UpstreamAuthRejected('Invalid or expired Anthropic API key')
            if e.status_code is None:
                raise GenerationFailure(f'Anthropic API error: {e.detail}')
            raise GenerationFailure(f'Anthropic API error ({e.status_code}): {e.detail}')
        return success_response(hints)

    @app.route('/health')
    def health():
        return success_response({'status': 'ok'})

    return app


app = create_app()


if __name__ == '__main__':
    print("\n" + "=" * 70)
    print("🐝 SPELLING BEE BUDDY - BACKEND")
    print("=" * 70)
    print("\nServer starting on http://localhost:8787")
    print("Press Ctrl+C to stop\n")

    app.run(debug=True, port=8787)
