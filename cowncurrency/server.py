"""Hello server: answers ``GET /KEY`` requests and tallies them per key."""

from __future__ import annotations

import argparse
import functools
import queue
import signal
from dataclasses import dataclass
from typing import List, Optional

from .handler import Handler
from .statistics import Statistics
from .tcp import CancellableTcpListener
from .thread_pool import ThreadPool, global_pool

DEFAULT_ADDRESS = "localhost:7878"


@dataclass(frozen=True)
class _Done:
    total: int


def serve(listener: CancellableTcpListener, pool: ThreadPool, handler: Handler) -> Statistics:
    """Serve connections on ``pool`` until ``listener`` is cancelled.

    Returns the statistics of every request answered.
    """
    reports: "queue.SimpleQueue" = queue.SimpleQueue()
    result: "queue.Queue[Statistics]" = queue.Queue(maxsize=1)

    def handle(request_id, stream) -> None:
        report = None
        try:
            report = handler.handle_conn(request_id, stream)
        finally:
            reports.put(report)

    def accept_loop() -> None:
        total = 0
        try:
            for request_id, stream in enumerate(listener.incoming()):
                pool.execute(functools.partial(handle, request_id, stream))
                total += 1
        finally:
            reports.put(_Done(total))

    def report_loop() -> None:
        stats = Statistics()
        expected: Optional[int] = None
        received = 0
        while expected is None or received < expected:
            item = reports.get()
            if isinstance(item, _Done):
                expected = item.total
                continue
            received += 1
            if item is not None:
                print(f"[report] {item}")
                stats.add_report(item)
        print("[sending stat]")
        result.put(stats)
        print("[sent stat]")

    pool.execute(accept_loop)
    pool.execute(report_loop)
    return result.get()


def main(argv: Optional[List[str]] = None) -> int:
    """Run the server until interrupted, then print the statistics."""
    parser = argparse.ArgumentParser(description="Serve cached results for GET /KEY requests.")
    parser.add_argument("address", nargs="?", default=DEFAULT_ADDRESS, help="host:port to listen on")
    args = parser.parse_args(argv)

    print(f"Run `curl http://{args.address}/KEY` to query the server with KEY")

    with CancellableTcpListener(args.address) as listener:
        previous = signal.signal(signal.SIGINT, lambda signum, frame: listener.cancel())
        try:
            stats = serve(listener, global_pool(), Handler())
        finally:
            signal.signal(signal.SIGINT, previous)

    print(f"[stat] {stats}")
    return 0