"""
In-memory stand-in for a requests.Session.

Routes are registered per URL; each call records the headers and keyword
arguments it received so tests can assert on conditional requests and on
redirect/stream settings without any network access.
"""

import threading
import time
from collections import defaultdict, deque
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

SKILL_URL = "https://raw.githubusercontent.com/acme/skills/main/demo/SKILL.md"


def skill_md(name: str = "demo", description: str = "Demo skill", body: str = "Hello") -> str:
    return f"---\nname: {name}\ndescription: {description}\n---\n\n{body}\n"


class FakeResponse:
    """Minimal streamed response."""

    def __init__(
        self,
        status_code: int = 200,
        body: Union[str, bytes, Iterable[bytes]] = b"",
        headers: Optional[Dict[str, str]] = None,
        chunk_delay: float = 0.0,
    ):
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.chunk_delay = chunk_delay
        self.closed = False
        self.bytes_served = 0
        self.chunks_served = 0
        if isinstance(body, str):
            body = body.encode("utf-8")
        self._body = body

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        if isinstance(self._body, bytes):
            source: Iterable[bytes] = (
                self._body[i : i + chunk_size] for i in range(0, len(self._body), chunk_size)
            )
        else:
            source = self._body
        for chunk in source:
            if self.chunk_delay:
                time.sleep(self.chunk_delay)
            self.bytes_served += len(chunk)
            self.chunks_served += 1
            yield chunk

    def close(self) -> None:
        self.closed = True


def endless_body(chunk: bytes = b"x" * 1024) -> Iterator[bytes]:
    while True:
        yield chunk


class StalledResponse(FakeResponse):
    """
    Serves ``head`` and then blocks inside the next read, like a socket read
    on an origin that went quiet, until the response is closed. The blocked
    read then fails with ``error``.
    """

    def __init__(self, head: bytes = b"---\n", error: Optional[Exception] = None, **kwargs):
        super().__init__(200, b"", **kwargs)
        self.head = head
        self.error = error or ValueError("I/O operation on closed file")
        self._released = threading.Event()

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        self.bytes_served += len(self.head)
        self.chunks_served += 1
        yield self.head
        if not self._released.wait(timeout=10):
            raise AssertionError("blocked read was never released")
        raise self.error

    def close(self) -> None:
        super().close()
        self._released.set()


class FakeHttpSession:
    """
    requests.Session double.

    ``route(url, response)`` queues a response (or a callable returning one,
    or an exception to raise) for the next GET of ``url``; the last queued
    entry is reused once the queue drains.
    """

    def __init__(self):
        self._routes: Dict[str, deque] = defaultdict(deque)
        self.calls: List[dict] = []
        self.responses: List[FakeResponse] = []
        self.closed = False

    def route(
        self,
        url: str,
        response: Union[FakeResponse, Exception, Callable[[dict], FakeResponse]],
    ) -> "FakeHttpSession":
        self._routes[url].append(response)
        return self

    def reroute(
        self,
        url: str,
        response: Union[FakeResponse, Exception, Callable[[dict], FakeResponse]],
    ) -> "FakeHttpSession":
        """Drop anything still queued for ``url`` and serve ``response`` instead."""
        self._routes[url].clear()
        return self.route(url, response)

    def get(self, url, headers=None, stream=False, timeout=None, allow_redirects=True):
        call = {
            "url": url,
            "headers": dict(headers or {}),
            "stream": stream,
            "timeout": timeout,
            "allow_redirects": allow_redirects,
        }
        self.calls.append(call)

        queue = self._routes.get(url)
        if not queue:
            raise AssertionError(f"unexpected GET {url}")
        entry = queue.popleft() if len(queue) > 1 else queue[0]

        if isinstance(entry, Exception):
            raise entry
        response = entry(call) if callable(entry) else entry
        self.responses.append(response)
        return response

    @property
    def last_if_none_match(self) -> Optional[str]:
        if not self.calls:
            return None
        return self.calls[-1]["headers"].get("If-None-Match")

    def close(self) -> None:
        self.closed = True
