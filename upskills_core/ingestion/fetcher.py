"""
Bounded fetcher for SKILL.md documents.

One GET per call, never following redirects, with a wall-clock budget that
covers connect, headers and body, and a byte ceiling enforced both against a
declared Content-Length and while streaming. Callers only ever see
``NotModified``, ``Fresh`` or a ``FetchError``.
"""

import socket
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import requests

from ..config import FetchConfig, get_config
from ..constants import FetchStatus
from ..exceptions import FetchError
from ..utils.logger import get_logger


@dataclass(frozen=True)
class NotModified:
    """The origin confirmed the cached representation (HTTP 304)."""

    etag: Optional[str]


@dataclass(frozen=True)
class Fresh:
    """A complete 200 response body within the byte ceiling."""

    etag: Optional[str]
    body: str
    status: int = FetchStatus.OK

    @property
    def size(self) -> int:
        return len(self.body.encode("utf-8"))


FetchOutcome = Union[NotModified, Fresh]

# requests refuses a zero or negative timeout
_MIN_SOCKET_TIMEOUT = 0.001


class _Deadline:
    def __init__(self, budget_seconds: float):
        self.budget_seconds = budget_seconds
        self.expires_at = time.monotonic() + budget_seconds

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


class _Watchdog:
    """
    Tears down a streaming response once the deadline passes.

    The socket timeout given to requests bounds each read, not the whole
    body, so a slow-drip origin could otherwise hold a read past the budget.
    Shutting the socket down wakes the blocked read.
    """

    def __init__(self, response: Any, deadline: _Deadline):
        self.response = response
        self.fired = threading.Event()
        self._timer = threading.Timer(max(deadline.remaining(), 0.0), self._abort)
        self._timer.daemon = True
        self._timer.start()

    def _abort(self) -> None:
        self.fired.set()
        sock = _response_socket(self.response)
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Already closed by the origin
                pass
        self.response.close()

    def cancel(self) -> None:
        self._timer.cancel()


def _response_socket(response: Any) -> Optional[socket.socket]:
    raw = getattr(response, "raw", None)
    connection = getattr(raw, "connection", None) or getattr(raw, "_connection", None)
    return getattr(connection, "sock", None)


class BoundedFetcher:
    """
    Fetches SKILL.md documents through a requests-compatible session.

    ``http_session`` only needs ``get(url, headers=, stream=, timeout=,
    allow_redirects=)`` returning an object with ``status_code``, ``headers``,
    ``iter_content(chunk_size=)`` and ``close()``.
    """

    def __init__(self, http_session: Optional[Any] = None, config: Optional[FetchConfig] = None):
        self.config = config or get_config().fetch
        self.http_session = http_session if http_session is not None else requests.Session()
        self.logger = get_logger()

    def fetch(self, url: str, if_none_match: Optional[str] = None) -> FetchOutcome:
        """
        Fetch ``url``, conditionally when ``if_none_match`` carries a prior ETag.

        Raises:
            FetchError: ``timeout``, ``redirect_not_allowed``,
                ``upstream_status_<code>``, ``response_too_large`` or
                ``connection_error``
        """
        deadline = _Deadline(self.config.timeout_seconds)
        headers: Dict[str, str] = {"User-Agent": self.config.user_agent}
        if if_none_match:
            headers["If-None-Match"] = if_none_match

        self.logger.debug("Fetching skill manifest", extra={"url": url, "conditional": bool(if_none_match)})

        try:
            response = self.http_session.get(
                url,
                headers=headers,
                stream=True,
                timeout=max(deadline.remaining(), _MIN_SOCKET_TIMEOUT),
                allow_redirects=False,
            )
        except requests.RequestException as e:
            raise self._transport_error(e, deadline) from e

        watchdog = _Watchdog(response, deadline)
        try:
            outcome = self._consume(response, deadline, watchdog)
        finally:
            watchdog.cancel()
            response.close()

        self.logger.info(
            "Fetched skill manifest",
            extra={
                "url": url,
                "status": FetchStatus.NOT_MODIFIED if isinstance(outcome, NotModified) else outcome.status,
                "elapsed_ms": round((deadline.budget_seconds - deadline.remaining()) * 1000, 2),
            },
        )
        return outcome

    def _consume(self, response: Any, deadline: _Deadline, watchdog: _Watchdog) -> FetchOutcome:
        status = response.status_code
        etag = response.headers.get("ETag")

        if status == FetchStatus.NOT_MODIFIED:
            return NotModified(etag=etag)
        if 300 <= status < 400:
            raise FetchError("redirect_not_allowed", upstream_status=status)
        if status != FetchStatus.OK:
            raise FetchError(f"upstream_status_{status}", upstream_status=status)

        declared = response.headers.get("Content-Length")
        if declared is not None:
            try:
                declared_size = int(declared)
            except ValueError:
                declared_size = None
            if declared_size is not None and declared_size > self.config.max_bytes:
                raise FetchError("response_too_large", declared_size=declared_size)

        body = self._read_body(response, deadline, watchdog)
        return Fresh(etag=etag, body=body.decode("utf-8", errors="replace"))

    def _read_body(self, response: Any, deadline: _Deadline, watchdog: _Watchdog) -> bytes:
        chunks = []
        total = 0
        try:
            for chunk in response.iter_content(chunk_size=self.config.chunk_size):
                if deadline.expired:
                    raise FetchError("timeout", bytes_read=total)
                if not chunk:
                    continue
                total += len(chunk)
                if total > self.config.max_bytes:
                    raise FetchError("response_too_large", bytes_read=total)
                chunks.append(chunk)
        except FetchError:
            raise
        except Exception as e:
            # Reads on a socket the watchdog shut down fail with whatever the stack raises
            if watchdog.fired.is_set():
                raise FetchError("timeout", bytes_read=total, cause=e) from e
            if isinstance(e, requests.RequestException):
                raise self._transport_error(e, deadline) from e
            raise

        if deadline.expired or watchdog.fired.is_set():
            raise FetchError("timeout", bytes_read=total)
        return b"".join(chunks)

    @staticmethod
    def _transport_error(e: Exception, deadline: _Deadline) -> FetchError:
        # requests reports streaming read timeouts as ConnectionError
        if isinstance(e, requests.Timeout) or deadline.expired:
            return FetchError("timeout", cause=e)
        return FetchError("connection_error", cause=e)

    def close(self) -> None:
        close = getattr(self.http_session, "close", None)
        if close is not None:
            close()
