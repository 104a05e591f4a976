"""
Error taxonomy for the Spelling Bee Buddy backend

Every failure a route can produce is one of these. Each kind carries the HTTP
status the gateway answers with; production_app is the only place that turns
them into responses.
"""

from typing import Optional


class BuddyError(Exception):
    """Base class for failures that map onto an error envelope"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingCredential(BuddyError):
    """Caller omitted a header the route requires"""
    status_code = 401


class UpstreamAuthRejected(BuddyError):
    """Upstream refused the caller-supplied credential (401/403)"""
    status_code = 401


class UpstreamNotFound(BuddyError):
    status_code = 404


class UpstreamUnavailable(BuddyError):
    status_code = 502


class ParseFailure(BuddyError):
    """Upstream data was missing or did not have the expected shape"""
    status_code = 502


class CacheUnavailable(BuddyError):
    status_code = 500


class GenerationFailure(BuddyError):
    """The language-model call itself failed"""
    status_code = 500


class RouteNotFound(BuddyError):
    status_code = 404
