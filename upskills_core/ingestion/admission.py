"""
URL admission control.

Validates a candidate SKILL.md locator against protocol, host and shape policy
before any network call is made. Pure: no I/O.
"""

from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import SplitResult, urlsplit

from urllib3.exceptions import LocationParseError
from urllib3.util import parse_url

from ..config import AdmissionConfig, get_config
from ..exceptions import AdmissionError


@dataclass(frozen=True)
class AdmittedURL:
    """A locator that passed admission, with its parsed parts."""

    url: str
    parts: SplitResult

    @property
    def hostname(self) -> str:
        return self.parts.hostname or ""

    @property
    def path(self) -> str:
        return self.parts.path

    def __str__(self) -> str:
        return self.url


def _has_unsafe_characters(value: str) -> bool:
    # urllib3 ends the authority at a backslash, urlsplit does not
    return any(
        ch.isspace() or ord(ch) < 0x20 or ord(ch) == 0x7F or ch == "\\" for ch in value
    )


def _wire_host(locator: str) -> str:
    """Host that requests will actually connect to."""
    try:
        return (parse_url(locator).host or "").lower()
    except LocationParseError:
        raise AdmissionError("invalid_url", "source_url must be a valid URL") from None


def validate_source_url(locator: Any, config: Optional[AdmissionConfig] = None) -> AdmittedURL:
    """
    Admit ``locator`` or raise AdmissionError.

    Checks, in order: non-empty string, length ceiling, absolute URL syntax,
    ``https`` scheme, host allowlist (as parsed here and as parsed by
    urllib3 when requests sends it), no query or fragment (an empty ``?`` or
    ``#`` counts), path ending exactly in the manifest suffix.
    """
    config = config or get_config().admission

    if not isinstance(locator, str) or not locator:
        raise AdmissionError("invalid_url", "source_url must be a non-empty string")
    if len(locator) > config.max_url_length:
        raise AdmissionError(
            "url_too_long", f"source_url must be <= {config.max_url_length} chars"
        )
    if _has_unsafe_characters(locator):
        raise AdmissionError("invalid_url", "source_url must be a valid URL")

    try:
        parts = urlsplit(locator)
        # Accessing port validates it
        parts.port
    except ValueError:
        raise AdmissionError("invalid_url", "source_url must be a valid URL") from None

    if not parts.scheme or not parts.netloc or not parts.hostname:
        raise AdmissionError("invalid_url", "source_url must be a valid URL")

    if parts.scheme.lower() != "https":
        raise AdmissionError("invalid_protocol", "source_url must use https")

    hostname = parts.hostname.lower()
    if hostname not in config.allowed_hosts:
        raise AdmissionError("host_not_allowed", f"host not allowed: {hostname}")
    wire_host = _wire_host(locator)
    if wire_host not in config.allowed_hosts:
        raise AdmissionError("host_not_allowed", f"host not allowed: {wire_host}")

    if "?" in locator or "#" in locator:
        raise AdmissionError("no_query_or_fragment", "query/fragment not allowed")

    if not parts.path.endswith(config.required_suffix):
        raise AdmissionError("not_skill_md", f"path must end with {config.required_suffix}")

    return AdmittedURL(url=locator, parts=parts)
