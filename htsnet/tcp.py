"""Blocking TCP helpers: connecting with a timeout and reading lines or fixed-size data."""

from __future__ import annotations

import errno
import select
import socket
from collections.abc import MutableSequence

__all__ = [
    "TcpError",
    "tcp_connect",
    "tcp_write_queue",
    "tcp_read_line",
    "tcp_read_data",
    "tcp_read",
    "tcp_read_timeout",
    "tcp_close",
]

_FILL_SIZE = 1000

_GAI_MESSAGES = {
    socket.EAI_NONAME: "The specified host is unknown",
    socket.EAI_FAIL: "A nonrecoverable failure in name resolution occurred",
    socket.EAI_MEMORY: "A memory allocation failure occurred",
    socket.EAI_AGAIN: "A temporary error occurred on an authoritative name server",
}


class TcpError(OSError):
    """A TCP operation failed.

    ``errno`` holds the error code when one is known.
    """


def _connect_addr(family: int, socktype: int, proto: int, address: tuple, timeout: int) -> socket.socket:
    """Connect to one resolved address, waiting at most ``timeout`` milliseconds."""
    try:
        sock = socket.socket(family, socktype, proto)
    except OSError as exc:
        raise TcpError(exc.errno, f"Unable to create socket: {exc.strerror}") from exc

    try:
        sock.settimeout(timeout / 1000 if timeout >= 0 else None)
        sock.connect(address)
    except socket.timeout as exc:
        sock.close()
        raise TcpError(errno.ETIMEDOUT, "Connection attempt timed out") from exc
    except OSError as exc:
        sock.close()
        raise TcpError(exc.errno, exc.strerror or str(exc)) from exc

    sock.settimeout(None)
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    return sock


def tcp_connect(hostname: str, port: int, timeout: int) -> socket.socket:
    """Open a TCP connection to ``hostname``:``port``.

    Every address the name resolves to is tried in turn; ``timeout`` is the
    time allowed for each attempt in milliseconds.  The returned socket is
    blocking and has ``TCP_NODELAY`` set.
    """
    try:
        results = socket.getaddrinfo(
            hostname, str(port), socket.AF_UNSPEC, socket.SOCK_STREAM, socket.IPPROTO_TCP
        )
    except socket.gaierror as exc:
        code = exc.errno
        message = _GAI_MESSAGES.get(code, f"Unknown error {code}")
        raise TcpError(message) from exc

    last_error: TcpError | None = None
    for family, socktype, proto, _canonname, address in results:
        try:
            return _connect_addr(family, socktype, proto, address, timeout)
        except TcpError as exc:
            last_error = exc

    if last_error is None:
        raise TcpError("The specified host is unknown")
    raise last_error


def tcp_write_queue(sock: socket.socket, chunks: MutableSequence[bytes]) -> None:
    """Send every queued chunk in order and empty the queue."""
    try:
        for chunk in list(chunks):
            sock.sendall(chunk)
    finally:
        chunks.clear()


def _fill_spill(sock: socket.socket, spill: bytearray) -> None:
    """Append freshly received bytes to ``spill``; raise on end of stream or error."""
    try:
        data = sock.recv(_FILL_SIZE)
    except OSError as exc:
        raise TcpError(exc.errno, exc.strerror or str(exc)) from exc
    if not data:
        raise TcpError(errno.ECONNRESET, "Connection closed")
    spill += data


def tcp_read_line(sock: socket.socket, spill: bytearray, max_length: int) -> bytes:
    """Read one newline-terminated line.

    Bytes received beyond the line stay in ``spill`` for the next call.
    Trailing control characters (such as ``\\r``) are removed.  A line of
    ``max_length - 1`` bytes or more is an error.
    """
    while True:
        length = spill.find(b"\n")
        if length == -1:
            _fill_spill(sock, spill)
            continue

        if length >= max_length - 1:
            raise TcpError(f"Line longer than {max_length - 1} bytes")

        line = bytes(spill[:length])
        del spill[: length + 1]
        end = len(line)
        while end > 0 and line[end - 1] < 32:
            end -= 1
        return line[:end]


def _recv_all(sock: socket.socket, length: int) -> bytes:
    """Receive until ``length`` bytes have arrived or the peer closes."""
    parts: list[bytes] = []
    remaining = length
    while remaining > 0:
        data = sock.recv(remaining)
        if not data:
            break
        parts.append(data)
        remaining -= len(data)
    return b"".join(parts)


def tcp_read_data(sock: socket.socket, length: int, spill: bytearray) -> bytes:
    """Read exactly ``length`` bytes, taking buffered bytes from ``spill`` first."""
    head = bytes(spill[:length])
    del spill[: len(head)]
    if len(head) == length:
        return head

    wanted = length - len(head)
    try:
        rest = _recv_all(sock, wanted)
    except OSError as exc:
        raise TcpError(exc.errno, exc.strerror or str(exc)) from exc
    if len(rest) != wanted:
        raise TcpError(errno.ECONNRESET, "Connection closed before all data arrived")
    return head + rest


def tcp_read(sock: socket.socket, length: int) -> bytes:
    """Read exactly ``length`` bytes, blocking until they arrive."""
    try:
        data = _recv_all(sock, length)
    except OSError as exc:
        raise TcpError(exc.errno, exc.strerror or str(exc)) from exc
    if len(data) != length:
        raise TcpError(errno.ECONNRESET, "Connection reset by peer")
    return data


def tcp_read_timeout(sock: socket.socket, length: int, timeout: int) -> bytes:
    """Read exactly ``length`` bytes, waiting at most ``timeout`` ms for each piece."""
    if timeout <= 0:
        raise ValueError("timeout must be positive")

    parts: list[bytes] = []
    total = 0
    while total != length:
        ready, _, _ = select.select([sock], [], [], timeout / 1000)
        if not ready:
            raise TcpError(errno.ETIMEDOUT, "Timed out waiting for data")

        previous = sock.gettimeout()
        sock.setblocking(False)
        try:
            data = sock.recv(length - total)
        except BlockingIOError:
            continue
        except OSError as exc:
            raise TcpError(exc.errno, exc.strerror or str(exc)) from exc
        finally:
            sock.settimeout(previous)

        if not data:
            raise TcpError(errno.ECONNRESET, "Connection reset by peer")
        parts.append(data)
        total += len(data)
    return b"".join(parts)


def tcp_close(sock: socket.socket) -> None:
    """Close the connection."""
    sock.close()