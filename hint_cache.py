"""
Hint cache backed by PostgreSQL

Generated hints are stored per puzzle date with an expiry. Lookups are
cache-aside: the caller reads, and on a miss generates and writes back.
Two requests missing the same key at once will both generate; the last
write wins.
"""

from typing import Dict, Optional

import psycopg2
from psycopg2.extras import Json

from errors import CacheUnavailable
from game_data import PuzzleData
from hint_generator import HintGenerator, build_cache_key


class HintCache:
    """Key/value store with per-entry expiry"""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._schema_ready = False

    def get_db(self):
        try:
            conn = psycopg2.connect(self.database_url)
        except psycopg2.Error as e:
            print(f"Hint cache: connection failed: {e}")
            raise CacheUnavailable('Hint cache unavailable')

        if not self._schema_ready:
            try:
                self._init_schema(conn)
            except psycopg2.Error as e:
                conn.close()
                print(f"Hint cache: schema setup failed: {e}")
                raise CacheUnavailable('Hint cache unavailable')
        return conn

    def _init_schema(self, conn):
        cursor = conn.cursor()
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS hint_cache (
                cache_key TEXT PRIMARY KEY,
                value JSONB NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                expires_at TIMESTAMP NOT NULL
            )
        ''')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_hint_cache_expires ON hint_cache(expires_at)')
        conn.commit()
        cursor.close()
        self._schema_ready = True

    def get(self, key: str) -> Optional[Dict]:
        """Cached value for `key`, or None if missing or expired"""
        conn = self.get_db()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT value FROM hint_cache
                WHERE cache_key = %s AND expires_at > NOW()
            ''', (key,))
            row = cursor.fetchone()
            cursor.close()
        except psycopg2.Error as e:
            print(f"Hint cache: read failed for {key}: {e}")
            raise CacheUnavailable('Hint cache unavailable')
        finally:
            conn.close()

        return row[0] if row else None

    def put(self, key: str, value: Dict, ttl_seconds: int):
        conn = self.get_db()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO hint_cache (cache_key, value, expires_at)
                VALUES (%s, %s, NOW() + %s * INTERVAL '1 second')
                ON CONFLICT (cache_key) DO UPDATE
                SET value = EXCLUDED.value,
                    created_at = CURRENT_TIMESTAMP,
                    expires_at = EXCLUDED.expires_at
            ''', (key, Json(value), ttl_seconds))
            conn.commit()
            cursor.close()
        except psycopg2.Error as e:
            print(f"Hint cache: write failed for {key}: {e}")
            raise CacheUnavailable('Hint cache unavailable')
        finally:
            conn.close()

    def purge_expired(self) -> int:
        """Delete expired entries, returning how many were removed"""
        conn = self.get_db()
        try:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM hint_cache WHERE expires_at <= NOW()')
            removed = cursor.rowcount
            conn.commit()
            cursor.close()
        except psycopg2.Error as e:
            print(f"Hint cache: purge failed: {e}")
            raise CacheUnavailable('Hint cache unavailable')
        finally:
            conn.close()
        return removed


def get_or_generate_hints(cache, generator: HintGenerator, puzzle: PuzzleData,
                          api_key: str, ttl_seconds: int) -> Dict:
    """
    Cached hints for the puzzle's date, generating them on a miss

    A failed write-back is logged and the fresh hints are still returned.
    """
    key = build_cache_key(puzzle.print_date)

    cached = cache.get(key)
    if cached is not None:
        print(f"Hint cache: hit for {key}")
        return cached

    print(f"Hint cache: miss for {key}")
    hints = generator.generate(puzzle, api_key)

    try:
        cache.put(key, hints, ttl_seconds)
        cache.purge_expired()
    except CacheUnavailable:
        print(f"Hint cache: could not store {key}, returning fresh hints")

    return hints
