"""TCP listener whose connection loop can be cancelled from another thread."""

from __future__ import annotations

import socket
import threading
from typing import Iterator, Tuple, Union

Address = Union[str, Tuple[str, int]]

_WILDCARDS = {"": "127.0.0.1", "0.0.0.0": "127.0.0.1", "::": "::1"}


def _parse_address(address: Address) -> Tuple[str, int]:
    if isinstance(address, str):
        host, sep, port = address.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"invalid address: {address!r}")
        return host.strip("[]"), int(port)
    host, port = address
    return host, int(port)


class CancellableTcpListener:
    """A listening socket whose ``incoming`` iteration stops once cancelled."""

    def __init__(self, address: Address) -> None:
        host, port = _parse_address(address)
        family, _, _, _, sockaddr = socket.getaddrinfo(
            host, port, type=socket.SOCK_STREAM
        )[0]
        self._sock = socket.create_server(sockaddr, family=family)
        self._cancelled = threading.Event()

    def local_address(self) -> Tuple[str, int]:
        """Return the host and port the listener is bound to."""
        name = self._sock.getsockname()
        return name[0], name[1]

    def cancel(self) -> None:
        """Stop accepting connections, waking a blocked ``accept``."""
        self._cancelled.set()
        host, port = self.local_address()
        host = _WILDCARDS.get(host, host)
        socket.create_connection((host, port)).close()

    def incoming(self) -> Iterator[socket.socket]:
        """Yield accepted connections until the listener is cancelled."""
        while True:
            conn, _ = self._sock.accept()
            if self._cancelled.is_set():
                conn.close()
                return
            yield conn

    def close(self) -> None:
        """Close the listening socket."""
        self._sock.close()

    def __enter__(self) -> "CancellableTcpListener":
        return self

    def __exit__(self, *args) -> None:
        self.close()