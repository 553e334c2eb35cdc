"""
Client for the Pwned Passwords range API.

k-anonymity: only the first five hex characters of the password's SHA-1
digest leave the process. The service answers with every known suffix
for that prefix and its breach count.
"""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pwnedpasswords.com/range/"


class PwnedLookupError(Exception):
    """Breach corpus could not be queried (network failure, bad status, bad body)."""


class PwnedPasswordsClient:
    """Query breach counts by SHA-1 prefix."""

    def __init__(self, api_url: str = DEFAULT_API_URL, timeout_seconds: float = 5.0):
        if not api_url:
            raise ValueError("api_url is required")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.api_url = api_url if api_url.endswith("/") else api_url + "/"
        self.timeout_seconds = timeout_seconds

    def range(self, prefix: str) -> dict[str, int]:
        """
        Fetch suffix -> breach count for a five-character SHA-1 prefix.

        Padding entries (count 0) are dropped.

        Raises:
            ValueError: If prefix is not five hex characters.
            PwnedLookupError: On any transport or protocol failure.
        """
        prefix = prefix.upper()
        if len(prefix) != 5 or any(c not in "0123456789ABCDEF" for c in prefix):
            raise ValueError("prefix must be five hexadecimal characters")

        try:
            response = requests.get(
                self.api_url + prefix,
                headers={"Add-Padding": "true", "User-Agent": "gatehouse-password-check"},
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Pwned Passwords lookup failed: {e}")
            raise PwnedLookupError(f"Connection failed: {e}")

        if response.status_code != 200:
            logger.warning(f"Pwned Passwords returned HTTP {response.status_code}")
            raise PwnedLookupError(f"Unexpected status {response.status_code}")

        counts: dict[str, int] = {}
        for line in response.text.splitlines():
            line = line.strip()
            if not line:
                continue
            suffix, sep, count = line.partition(":")
            if not sep:
                raise PwnedLookupError(f"Malformed range line: {line!r}")
            try:
                value = int(count)
            except ValueError:
                raise PwnedLookupError(f"Malformed breach count: {line!r}")
            if value > 0:
                counts[suffix.upper()] = value

        return counts
