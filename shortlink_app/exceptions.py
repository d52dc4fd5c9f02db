"""
Errors raised by the short link engine.

Taxonomy:
- InvalidInput: caller mistakes, rejected before touching any store
- CodeConflict / AllocationExhausted: allocation outcomes
- NotFound / LinkExpired: lookup outcomes
- StoreUnavailable: the database failed, callers may retry
- CacheUnavailable: raised by cache backends only, services absorb it
"""


class ShortLinkError(Exception):
    """Base class for all engine errors"""


class InvalidInput(ShortLinkError, ValueError):
    """Caller supplied malformed input"""


class InvalidUrl(InvalidInput):
    """Target URL is not a well-formed absolute URL.

    Only the http and https schemes are accepted; there is no length limit.
    """


class InvalidShortCode(InvalidInput):
    """Requested short code has a bad alphabet or length"""


class InvalidTtl(InvalidInput):
    """ttl_days is beyond the longest allowed link lifetime"""


class InvalidAnalyticsWindow(InvalidInput):
    """Analytics look-back window is outside the allowed range"""


class CodeConflict(ShortLinkError):
    """An active link already holds the requested short code"""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(
            f'Custom code "{short_code}" already exists. Please choose a different code.'
        )


class AllocationExhausted(ShortLinkError):
    """Generated codes kept colliding until the retry budget ran out"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not generate unique short code after {attempts} attempts"
        )


class NotFound(ShortLinkError):
    """No link holds the given short code"""


class LinkExpired(ShortLinkError):
    """The link exists but its expiration time has passed"""


class StoreUnavailable(ShortLinkError):
    """The durable store could not complete the operation (retryable)"""


class CacheUnavailable(ShortLinkError):
    """The cache backend could not complete the operation"""
