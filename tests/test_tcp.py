import errno
import socket
from collections import deque
from unittest import mock

import pytest

from htsnet.tcp import (
    TcpError,
    tcp_close,
    tcp_connect,
    tcp_read,
    tcp_read_data,
    tcp_read_line,
    tcp_read_timeout,
    tcp_write_queue,
)


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


def test_connect_to_local_server():
    server = socket.create_server(("127.0.0.1", 0))
    port = server.getsockname()[1]
    try:
        sock = tcp_connect("127.0.0.1", port, 1000)
        try:
            assert sock.getpeername()[1] == port
            assert bool(sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY)) is True
            assert sock.gettimeout() is None
        finally:
            sock.close()
    finally:
        server.close()


def test_connect_refused_raises():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(TcpError):
        tcp_connect("127.0.0.1", port, 1000)


def test_connect_unknown_host_message():
    err = socket.gaierror(socket.EAI_NONAME, "no name")
    with mock.patch("socket.getaddrinfo", side_effect=err):
        with pytest.raises(TcpError) as info:
            tcp_connect("host.example.com", 80, 1000)
    assert str(info.value) == "The specified host is unknown"


def test_connect_name_server_failure_message():
    err = socket.gaierror(socket.EAI_AGAIN, "again")
    with mock.patch("socket.getaddrinfo", side_effect=err):
        with pytest.raises(TcpError) as info:
            tcp_connect("host.example.com", 80, 1000)
    assert str(info.value) == "A temporary error occurred on an authoritative name server"


def test_read_line_strips_and_keeps_spill(pair):
    a, b = pair
    a.sendall(b"hello\r\nworld\n")
    spill = bytearray()
    assert tcp_read_line(b, spill, 100) == b"hello"
    assert tcp_read_line(b, spill, 100) == b"world"
    assert spill == bytearray()


def test_read_line_too_long(pair):
    a, b = pair
    a.sendall(b"abcdefgh\n")
    with pytest.raises(TcpError):
        tcp_read_line(b, bytearray(), 5)


def test_read_line_eof(pair):
    a, b = pair
    a.sendall(b"partial")
    a.shutdown(socket.SHUT_WR)
    spill = bytearray()
    with pytest.raises(TcpError):
        tcp_read_line(b, spill, 100)
    assert bytes(spill) == b"partial"


def test_read_data_from_spill_only(pair):
    _, b = pair
    spill = bytearray(b"abcdef")
    assert tcp_read_data(b, 4, spill) == b"abcd"
    assert bytes(spill) == b"ef"


def test_read_data_spill_then_socket(pair):
    a, b = pair
    spill = bytearray(b"abc")
    a.sendall(b"def")
    assert tcp_read_data(b, 5, spill) == b"abcde"
    assert spill == bytearray()
    assert tcp_read(b, 1) == b"f"


def test_read_data_short_raises(pair):
    a, b = pair
    a.sendall(b"x")
    a.shutdown(socket.SHUT_WR)
    with pytest.raises(TcpError):
        tcp_read_data(b, 4, bytearray(b"ab"))


def test_read_exact(pair):
    a, b = pair
    a.sendall(b"xyz")
    assert tcp_read(b, 3) == b"xyz"


def test_read_short_is_connreset(pair):
    a, b = pair
    a.sendall(b"xy")
    a.shutdown(socket.SHUT_WR)
    with pytest.raises(TcpError) as info:
        tcp_read(b, 3)
    assert info.value.errno == errno.ECONNRESET


def test_read_timeout_gets_data(pair):
    a, b = pair
    a.sendall(b"ab")
    a.sendall(b"cd")
    assert tcp_read_timeout(b, 4, 1000) == b"abcd"


def test_read_timeout_times_out(pair):
    _, b = pair
    with pytest.raises(TcpError) as info:
        tcp_read_timeout(b, 4, 50)
    assert info.value.errno == errno.ETIMEDOUT


def test_read_timeout_eof(pair):
    a, b = pair
    a.sendall(b"a")
    a.shutdown(socket.SHUT_WR)
    with pytest.raises(TcpError) as info:
        tcp_read_timeout(b, 4, 1000)
    assert info.value.errno == errno.ECONNRESET


def test_read_timeout_restores_blocking(pair):
    a, b = pair
    a.sendall(b"q")
    assert tcp_read_timeout(b, 1, 1000) == b"q"
    assert b.gettimeout() is None


@pytest.mark.parametrize("timeout", [0, -5])
def test_read_timeout_rejects_non_positive(pair, timeout):
    _, b = pair
    with pytest.raises(ValueError):
        tcp_read_timeout(b, 1, timeout)


def test_write_queue_list(pair):
    a, b = pair
    chunks = [b"ab", b"cd"]
    tcp_write_queue(a, chunks)
    assert chunks == []
    assert tcp_read(b, 4) == b"abcd"


def test_write_queue_deque(pair):
    a, b = pair
    chunks = deque([b"one", b"two"])
    tcp_write_queue(a, chunks)
    assert len(chunks) == 0
    assert tcp_read(b, 6) == b"onetwo"


def test_close(pair):
    a, _ = pair
    tcp_close(a)
    assert a.fileno() == -1