import os
import signal
import socket
import threading

from cowncurrency.handler import Handler
from cowncurrency.server import main, serve
from cowncurrency.tcp import CancellableTcpListener
from cowncurrency.thread_pool import ThreadPool

TIMEOUT = 10


def _request(address, data: bytes) -> bytes:
    with socket.create_connection(address, timeout=TIMEOUT) as conn:
        conn.sendall(data)
        chunks = []
        while True:
            chunk = conn.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def _run_server(handler, exchange):
    """Serve in the background, run ``exchange(address)``, then cancel."""
    outcome = {}
    with ThreadPool(4) as pool, CancellableTcpListener(("127.0.0.1", 0)) as listener:
        runner = threading.Thread(
            target=lambda: outcome.setdefault("stats", serve(listener, pool, handler))
        )
        runner.start()
        responses = exchange(listener.local_address())
        listener.cancel()
        runner.join(TIMEOUT)
        alive = runner.is_alive()
    return outcome.get("stats"), responses, alive


def test_serve_answers_and_counts_requests():
    handler = Handler(compute=lambda key: key.upper())

    def exchange(address):
        return [
            _request(address, b"GET /abc HTTP/1.1\r\n\r\n"),
            _request(address, b"GET /abc HTTP/1.1\r\n\r\n"),
            _request(address, b"POST / HTTP/1.1\r\n\r\n"),
        ]

    stats, responses, alive = _run_server(handler, exchange)
    assert not alive
    assert responses[0].startswith(b"HTTP/1.1 200 OK\r\n\r\n")
    assert b'Result for key "abc" is "ABC"' in responses[0]
    assert responses[1] == responses[0]
    assert responses[2].startswith(b"HTTP/1.1 404 NOT FOUND\r\n\r\n")
    assert stats.hits_for("abc") == 2
    assert stats.hits_for(None) == 1
    assert sum(stats.hits.values()) == 3


def test_serve_computes_each_key_once():
    calls = []
    lock = threading.Lock()

    def compute(key):
        with lock:
            calls.append(key)
        return key

    def exchange(address):
        for key in (b"one", b"two", b"one", b"two", b"one"):
            _request(address, b"GET /" + key + b" HTTP/1.1\r\n\r\n")

    stats, _, alive = _run_server(Handler(compute=compute), exchange)
    assert not alive
    assert sorted(calls) == ["one", "two"]
    assert stats.hits_for("one") == 3
    assert stats.hits_for("two") == 2


def test_serve_without_connections_returns_empty_statistics():
    stats, responses, alive = _run_server(Handler(compute=str), lambda address: None)
    assert not alive
    assert responses is None
    assert sum(stats.hits.values()) == 0


def test_main_stops_on_interrupt(capsys):
    timer = threading.Timer(1.0, os.kill, args=(os.getpid(), signal.SIGINT))
    timer.start()
    try:
        assert main(["127.0.0.1:0"]) == 0
    finally:
        timer.cancel()
    out = capsys.readouterr().out
    assert "curl http://127.0.0.1:0/KEY" in out
    assert "[stat]" in out