"""Request handler that answers each key from a cache."""

from __future__ import annotations

import re
import socket
import time
from typing import Callable, Optional, Tuple

from .cache import Cache
from .statistics import Report

_REQUEST = re.compile(r"GET /(?P<key>\w+) HTTP/1.1\r\n")
_READ_SIZE = 512

OK_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>Hello!</title>
  </head>
  <body>
    <p>Result for key "{key}" is "{result}"</p>
  </body>
</html>"""

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="utf-8">
    <title>Hello!</title>
  </head>
  <body>
    <h1>Oops!</h1>
    <p>Sorry, I don't know what you're asking for.</p>
  </body>
</html>"""


def expensive_computation(key: str) -> str:
    """Compute the result for ``key``; takes a few seconds."""
    print(f"[handler] doing computation for key: {key}")
    time.sleep(3)
    return f"{key}🐕"


def parse_key(request: bytes) -> Optional[str]:
    """Extract the key from a ``GET /KEY HTTP/1.1`` request line, if any."""
    match = _REQUEST.search(request.decode("utf-8", errors="replace"))
    return match.group("key") if match else None


class Handler:
    """Serves requests, caching the computed result for each key."""

    def __init__(
        self,
        compute: Callable[[str], str] = expensive_computation,
        cache: Optional[Cache] = None,
    ) -> None:
        self.compute = compute
        self.cache = cache if cache is not None else Cache()

    def respond(self, request: bytes) -> Tuple[Optional[str], bytes]:
        """Return the requested key and the full HTTP response for ``request``."""
        key = parse_key(request)
        if key is None:
            body = "HTTP/1.1 404 NOT FOUND\r\n\r\n" + NOT_FOUND_PAGE
        else:
            result = self.cache.get_or_insert_with(key, self.compute)
            page = OK_PAGE.replace("{key}", key).replace("{result}", result)
            body = "HTTP/1.1 200 OK\r\n\r\n" + page
        return key, body.encode("utf-8")

    def handle_conn(self, request_id: int, stream: socket.socket) -> Report:
        """Answer one connection, close it and report what was asked for."""
        with stream:
            request = stream.recv(_READ_SIZE)
            key, response = self.respond(request)
            stream.sendall(response)
        return Report(request_id, key)