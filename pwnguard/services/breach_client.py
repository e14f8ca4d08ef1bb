"""Clients for looking up a password in the Pwned Passwords breach corpus.

The hook only depends on ``BreachLookupClient.query``. The k-anonymity range
query (SHA-1 prefix lookup) and the HTTP transport live here and nowhere else.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

logger = logging.getLogger(__name__)

PWNED_PASSWORDS_RANGE_URL = 'https://api.pwnedpasswords.com/range/{prefix}'


class BreachLookupError(Exception):
    """Base class for every failure of a breach lookup."""


class BreachLookupTimeout(BreachLookupError):
    pass


class BreachLookupTransportError(BreachLookupError):
    pass


class BreachLookupServiceError(BreachLookupError):
    pass


@dataclass(frozen=True)
class LookupOptions:
    open_timeout: float = 5.0
    read_timeout: float = 5.0
    user_agent: str = 'pwnguard'


class BreachLookupClient(ABC):

    @abstractmethod
    def query(self, password: str, options: LookupOptions) -> int:
        """Return how many times ``password`` occurs in the breach corpus.

        Raises BreachLookupError (or a subclass) when the lookup fails.
        Network implementations must never persist or log the password.
        """


class PwnedPasswordsClient(BreachLookupClient):
    """HaveIBeenPwned range API client.

    Hashes the password with SHA-1, sends the first 5 hex chars to the API and
    scans the returned suffixes for a match. Responses are padded with
    zero-count rows so the response size does not leak the match.
    """

    def __init__(self, url_template: str = PWNED_PASSWORDS_RANGE_URL, session=None):
        self.url_template = url_template
        self.session = session

    def query(self, password: str, options: LookupOptions) -> int:
        sha1 = hashlib.sha1((password or '').encode('utf-8')).hexdigest().upper()
        prefix, suffix = sha1[:5], sha1[5:]

        headers = {
            'User-Agent': options.user_agent,
            'Add-Padding': 'true',
        }
        get = self.session.get if self.session is not None else requests.get
        try:
            resp = get(self.url_template.format(prefix=prefix), headers=headers,
                       timeout=(options.open_timeout, options.read_timeout))
        except requests.exceptions.Timeout as e:
            logger.warning(f"Pwned Passwords lookup timed out (prefix {prefix})")
            raise BreachLookupTimeout(str(e)) from e
        except requests.RequestException as e:
            logger.warning(f"Pwned Passwords lookup failed: {e.__class__.__name__}")
            raise BreachLookupTransportError(str(e)) from e

        if resp.status_code != 200:
            logger.warning(f"Pwned Passwords API returned HTTP {resp.status_code}")
            raise BreachLookupServiceError(f'HTTP {resp.status_code}')

        return self._parse_range(resp.text, suffix)

    @staticmethod
    def _parse_range(body: str, suffix: str) -> int:
        for line in body.splitlines():
            parts = line.split(':')
            if len(parts) != 2:
                continue
            if parts[0].strip().upper() == suffix:
                try:
                    return int(parts[1].strip())
                except ValueError as e:
                    raise BreachLookupServiceError(f'Malformed count for matching suffix: {parts[1]!r}') from e
        return 0


class StaticBreachClient(BreachLookupClient):
    """In-process client answering from a fixed table.

    Used for tests and offline development. Every queried password is kept in
    ``queries`` so callers can assert how many lookups happened. When ``error``
    is set it is raised on every query instead.
    """

    def __init__(self, counts=None, default: int = 0, error: Optional[BreachLookupError] = None):
        self.counts = dict(counts or {})
        self.default = default
        self.error = error
        self.queries = []
        self.last_options = None

    def query(self, password: str, options: LookupOptions) -> int:
        self.queries.append(password)
        self.last_options = options
        if self.error is not None:
            raise self.error
        return self.counts.get(password, self.default)
