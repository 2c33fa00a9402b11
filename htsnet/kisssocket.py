"""Sockets over TCP, TLS-over-TCP and UDP that report a status for each transfer."""

from __future__ import annotations

import select as _select
import socket
import ssl
import struct
from typing import Any, Optional, Union

from .endpoint import Endpoint, NetError, Protocol, SelectFlags, SocketStatus

__all__ = ["Socket", "tcp_socket", "tcp_ssl_socket", "udp_socket"]

_AddrInfo = tuple
_STREAM_PROTOCOLS = (Protocol.TCP, Protocol.TCP_SSL)
_KINDS = {
    Protocol.TCP: (socket.SOCK_STREAM, socket.IPPROTO_TCP),
    Protocol.TCP_SSL: (socket.SOCK_STREAM, socket.IPPROTO_TCP),
    Protocol.UDP: (socket.SOCK_DGRAM, socket.IPPROTO_UDP),
}
_WOULD_BLOCK = (BlockingIOError, TimeoutError, ssl.SSLWantReadError, ssl.SSLWantWriteError)


def _as_endpoint(endpoint: Union[Endpoint, str]) -> Endpoint:
    if isinstance(endpoint, str):
        return Endpoint.parse(endpoint)
    return endpoint


def _resolve(endpoint: Endpoint, protocol: Protocol) -> list[_AddrInfo]:
    socktype, proto = _KINDS[protocol]
    service = str(endpoint.port)
    try:
        return socket.getaddrinfo(
            endpoint.address, service, socket.AF_UNSPEC, socktype, proto, socket.AI_ADDRCONFIG
        )
    except socket.gaierror:
        pass
    # Hosts whose only configured interface is loopback reject AI_ADDRCONFIG.
    try:
        return socket.getaddrinfo(endpoint.address, service, socket.AF_UNSPEC, socktype, proto)
    except (socket.gaierror, UnicodeError) as exc:
        raise NetError("getaddrinfo failed!") from exc


def _tls_context() -> ssl.SSLContext:
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.maximum_version = ssl.TLSVersion.TLSv1_2
    return context


class Socket:
    """An IPv4 or IPv6 socket bound to an endpoint.

    Send and receive report a :class:`SocketStatus` alongside their result;
    fatal problems raise :class:`NetError`.
    """

    def __init__(self, endpoint: Union[Endpoint, str], protocol: Protocol = Protocol.TCP) -> None:
        self._setup(_as_endpoint(endpoint), Protocol(protocol))
        self._results = _resolve(self._bind_loc, self._protocol)
        for info in self._results:
            try:
                self._sock = socket.socket(info[0], info[1], info[2])
            except OSError:
                continue
            self._addrinfo = info
            break
        if self._sock is None:
            raise NetError("unable to create socket!")

    def _setup(self, endpoint: Endpoint, protocol: Protocol) -> None:
        self._bind_loc = endpoint
        self._protocol = protocol
        self._sock: Optional[socket.socket] = None
        self._results: list[_AddrInfo] = []
        self._addrinfo: Optional[_AddrInfo] = None
        self._peer: Optional[tuple[int, Any]] = None

    @classmethod
    def from_native(
        cls,
        native: Optional[socket.socket],
        endpoint: Union[Endpoint, str, None] = None,
        protocol: Protocol = Protocol.TCP,
    ) -> Socket:
        """Wrap an existing socket; ``None`` gives an invalid socket."""
        instance = cls.__new__(cls)
        instance._setup(_as_endpoint(endpoint) if endpoint is not None else Endpoint(), Protocol(protocol))
        instance._sock = native
        return instance

    def __repr__(self) -> str:
        state = "open" if self.is_valid() else "closed"
        return f"<Socket {self._protocol.value} {self._bind_loc} {state}>"

    @property
    def _fileno(self) -> int:
        return -1 if self._sock is None else self._sock.fileno()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Socket):
            return NotImplemented
        return self._fileno == other._fileno

    __hash__ = None  # type: ignore[assignment]

    def is_valid(self) -> bool:
        """Return whether an operating-system socket is held."""
        return self._sock is not None

    def __bool__(self) -> bool:
        return self.is_valid()

    def __enter__(self) -> Socket:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise NetError("operation on an invalid socket")
        return self._sock

    def set_non_blocking(self, state: bool = True) -> None:
        """Switch non-blocking mode on, or back off with ``state=False``."""
        try:
            self._require().setblocking(not state)
        except OSError as exc:
            raise NetError("setting socket to nonblock returned an error") from exc

    def set_broadcast(self, state: bool = True) -> None:
        """Enable or disable sending broadcasts."""
        try:
            self._require().setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1 if state else 0)
        except OSError as exc:
            raise NetError("setting socket broadcast mode returned an error") from exc

    def set_tcp_no_delay(self, state: bool = True) -> None:
        """Enable or disable ``TCP_NODELAY``; does nothing unless plain TCP."""
        if self._protocol is not Protocol.TCP:
            return
        try:
            self._require().setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1 if state else 0)
        except OSError as exc:
            raise NetError("setting socket tcpnodelay mode returned an error") from exc

    def get_status(self) -> SocketStatus:
        """Return the pending socket error as a status."""
        try:
            error = self._require().getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            raise NetError("getting socket error returned an error") from exc
        return SocketStatus.ERRORED if error == -1 else SocketStatus.VALID

    def bind(self) -> None:
        """Bind locally to the resolved address of the endpoint."""
        if self._addrinfo is None:
            raise NetError("bind() failed")
        try:
            self._require().bind(self._addrinfo[4])
        except OSError as exc:
            raise NetError("bind() failed") from exc

    def _connect_addr(self, info: _AddrInfo, timeout: int, create: bool) -> SocketStatus:
        if create:
            self.close()
            self._addrinfo = None
            try:
                self._sock = socket.socket(info[0], info[1], info[2])
            except OSError:
                return SocketStatus.ERRORED
        sock = self._sock
        if sock is None:
            return SocketStatus.ERRORED
        self._addrinfo = info

        failed = False
        previous = sock.gettimeout()
        try:
            if timeout > 0:
                sock.settimeout(timeout / 1000)
            sock.connect(info[4])
        except OSError:
            failed = True
        finally:
            if timeout > 0:
                sock.settimeout(previous)

        if failed:
            self.close()
            self._addrinfo = None
            return SocketStatus.ERRORED
        return SocketStatus.VALID

    def connect(self, timeout: int = 0) -> SocketStatus:
        """Connect as a client, trying each resolved address in turn.

        ``timeout`` is in milliseconds; 0 waits as long as the system does.
        For TLS the handshake follows, and its failure gives ``ERRORED``.
        """
        if self._protocol not in _STREAM_PROTOCOLS:
            raise NetError("connect called for non-tcp socket")

        current = self._addrinfo
        if current is None or self._connect_addr(current, timeout, False) != SocketStatus.VALID:
            for info in self._results:
                if info is current:
                    continue
                if self._connect_addr(info, timeout, True) == SocketStatus.VALID:
                    break

        if self._sock is None:
            raise NetError("unable to create connectable socket!")

        if self._protocol is Protocol.TCP_SSL:
            try:
                self._sock = _tls_context().wrap_socket(self._sock)
            except (OSError, ValueError):
                return SocketStatus.ERRORED
        return SocketStatus.VALID

    def listen(self) -> None:
        """Start listening for connections on a bound TCP socket."""
        if self._protocol is not Protocol.TCP:
            return
        try:
            self._require().listen(socket.SOMAXCONN)
        except OSError as exc:
            raise NetError("listen failed") from exc

    def accept(self) -> Socket:
        """Wait for a client and return a socket connected to it.

        Returns an invalid socket for non-TCP sockets, or when a
        non-blocking socket had nothing to accept.
        """
        if self._protocol is not Protocol.TCP:
            return Socket.from_native(None, Endpoint(), self._protocol)
        try:
            conn, address = self._require().accept()
        except (BlockingIOError, InterruptedError):
            return Socket.from_native(None, Endpoint(), self._protocol)
        except OSError as exc:
            raise NetError("accept() returned an invalid socket") from exc
        return Socket.from_native(conn, Endpoint.from_sockaddr(conn.family, address), self._protocol)

    def close(self) -> None:
        """Close the socket; it is invalid afterwards."""
        if self._sock is not None:
            self._sock.close()
        self._sock = None

    def shutdown(self) -> None:
        """Shut down both directions of the connection, ignoring errors."""
        if self._sock is None:
            return
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

    def select(self, fds: int, timeout: int) -> SocketStatus:
        """Wait up to ``timeout`` ms for the conditions in ``fds``."""
        if self._sock is None:
            return SocketStatus.ERRORED
        flags = SelectFlags(fds)
        watch = [self._sock]
        try:
            readable, writable, failed = _select.select(
                watch if SelectFlags.READ in flags else [],
                watch if SelectFlags.WRITE in flags else [],
                watch if SelectFlags.EXCEPT in flags else [],
                timeout / 1000,
            )
        except (OSError, ValueError):
            return SocketStatus.ERRORED
        if readable or writable or failed:
            return SocketStatus.VALID
        return SocketStatus.TIMED_OUT

    def send(self, data: bytes) -> tuple[int, SocketStatus]:
        """Send ``data``; return the number of bytes sent and a status."""
        sock = self._sock
        if sock is None:
            return 0, SocketStatus.ERRORED
        try:
            if self._protocol is Protocol.UDP:
                if self._addrinfo is None:
                    return 0, SocketStatus.ERRORED
                sent = sock.sendto(data, self._addrinfo[4])
            elif self._protocol is Protocol.TCP_SSL and not isinstance(sock, ssl.SSLSocket):
                return 0, SocketStatus.ERRORED
            else:
                sent = sock.send(data)
        except _WOULD_BLOCK:
            return 0, SocketStatus.NON_BLOCKING_WOULD_HAVE_BLOCKED
        except OSError:
            return 0, SocketStatus.ERRORED
        return sent, SocketStatus.VALID

    @staticmethod
    def _recv_stream(sock: socket.socket, size: int, wait: bool) -> bytes:
        if wait:
            return sock.recv(size, getattr(socket, "MSG_WAITALL", 0))
        dontwait = getattr(socket, "MSG_DONTWAIT", None)
        if dontwait is not None:
            return sock.recv(size, dontwait)
        previous = sock.gettimeout()
        sock.setblocking(False)
        try:
            return sock.recv(size)
        finally:
            sock.settimeout(previous)

    def recv(self, size: int, wait: bool = True) -> tuple[bytes, SocketStatus]:
        """Receive up to ``size`` bytes and a status.

        Over plain TCP, ``wait`` blocks until all ``size`` bytes arrive and
        ``wait=False`` returns at once with whatever is there.  Zero bytes
        mean the peer disconnected cleanly.
        """
        sock = self._sock
        if sock is None:
            return b"", SocketStatus.ERRORED
        try:
            if self._protocol is Protocol.UDP:
                data, address = sock.recvfrom(size)
                self._peer = (sock.family, address)
            elif self._protocol is Protocol.TCP_SSL:
                if not isinstance(sock, ssl.SSLSocket):
                    return b"", SocketStatus.ERRORED
                data = sock.recv(size)
            else:
                data = self._recv_stream(sock, size, wait)
        except _WOULD_BLOCK:
            return b"", SocketStatus.NON_BLOCKING_WOULD_HAVE_BLOCKED
        except OSError:
            return b"", SocketStatus.ERRORED
        if not data:
            return b"", SocketStatus.CLEANLY_DISCONNECTED
        return data, SocketStatus.VALID

    @property
    def bind_loc(self) -> Endpoint:
        """The endpoint this socket was created for."""
        return self._bind_loc

    def recv_endpoint(self) -> Endpoint:
        """Return where the data of the last receive came from."""
        if self._protocol in _STREAM_PROTOCOLS:
            return self._bind_loc
        if self._peer is None:
            raise NetError("Couldn't construct endpoint from sockaddr(_storage) struct")
        family, address = self._peer
        return Endpoint.from_sockaddr(family, address)

    def bytes_available(self) -> int:
        """Return how many bytes can be read without blocking."""
        sock = self._require()
        try:
            import fcntl
            import termios
        except ImportError as exc:
            raise NetError("FIONREAD is not available on this platform") from exc
        try:
            raw = fcntl.ioctl(sock.fileno(), termios.FIONREAD, b"\0\0\0\0")
        except OSError as exc:
            raise NetError("ioctlsocket status is negative when getting FIONREAD") from exc
        (size,) = struct.unpack("i", raw)
        return max(size, 0)

    @property
    def protocol(self) -> Protocol:
        """The protocol this socket uses."""
        return self._protocol


def tcp_socket(endpoint: Union[Endpoint, str]) -> Socket:
    """Create a TCP socket for ``endpoint``."""
    return Socket(endpoint, Protocol.TCP)


def tcp_ssl_socket(endpoint: Union[Endpoint, str]) -> Socket:
    """Create a TLS-over-TCP socket for ``endpoint``."""
    return Socket(endpoint, Protocol.TCP_SSL)


def udp_socket(endpoint: Union[Endpoint, str]) -> Socket:
    """Create a UDP socket for ``endpoint``."""
    return Socket(endpoint, Protocol.UDP)