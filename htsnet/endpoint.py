"""Endpoints, protocol kinds and the status values returned by socket operations."""

from __future__ import annotations

import enum
import socket
from dataclasses import dataclass

__all__ = [
    "NetError",
    "Protocol",
    "SelectFlags",
    "SocketStatus",
    "Endpoint",
    "is_valid_port_number",
]

_ULONG_RANGE = 1 << 64


class NetError(RuntimeError):
    """A fatal networking error: the objects involved should be discarded."""


class Protocol(enum.Enum):
    """Low level protocol used by a socket."""

    TCP = "tcp"
    TCP_SSL = "tcp_ssl"
    UDP = "udp"


class SelectFlags(enum.IntFlag):
    """Which readiness conditions :meth:`select` waits for."""

    READ = 0x1
    WRITE = 0x2
    EXCEPT = 0x4


class SocketStatus(enum.IntEnum):
    """Outcome of a socket operation.

    Only ``ERRORED`` is false; every other value is a notification on a
    socket that is still usable.
    """

    ERRORED = 0x0
    VALID = 0x1
    CLEANLY_DISCONNECTED = 0x2
    NON_BLOCKING_WOULD_HAVE_BLOCKED = 0x3
    TIMED_OUT = 0x4

    def __bool__(self) -> bool:
        return self.value > 0


def is_valid_port_number(number: int) -> bool:
    """Return whether ``number`` fits in a 16-bit port."""
    return 0 <= number < 1 << 16


def _parse_unsigned(text: str) -> int:
    """Read a leading decimal number the way ``strtoul`` does.

    Leading whitespace and a sign are accepted; text without digits gives 0.
    A negative number wraps around the 64-bit unsigned range.
    """
    rest = text.lstrip(" \t\n\r\f\v")
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    digits = ""
    for ch in rest:
        if not ("0" <= ch <= "9"):
            break
        digits += ch
    if not digits:
        return 0
    value = min(int(digits), _ULONG_RANGE - 1)
    return (-value) % _ULONG_RANGE if negative else value


@dataclass
class Endpoint:
    """A network location: a host name or address and a port."""

    address: str = ""
    port: int = 0

    def __post_init__(self) -> None:
        if not is_valid_port_number(self.port):
            raise NetError(f"Invalid port number {self.port}")

    @classmethod
    def parse(cls, text: str) -> Endpoint:
        """Build an endpoint from ``"address:port"``.

        The port follows the last colon, so an unbracketed IPv6 address such
        as ``"::1:80"`` is accepted.
        """
        separator = text.rfind(":")
        if separator == -1:
            raise NetError("string is not of address:port form")
        if separator == len(text) - 1:
            raise NetError("string has ':' as last character. Expected port number here")

        port = _parse_unsigned(text[separator + 1:])
        if not is_valid_port_number(port):
            raise NetError(f"Invalid port number {port}")
        return cls(text[:separator], port)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: tuple) -> Endpoint:
        """Build an endpoint from an address as returned by ``accept`` or ``recvfrom``."""
        if family == socket.AF_INET:
            host, port = sockaddr[0], sockaddr[1]
        elif family == socket.AF_INET6:
            host, port = sockaddr[0], sockaddr[1]
            host = host.split("%", 1)[0]
        else:
            raise NetError(
                "Trying to construct an endpoint for a protocol familly "
                "that is neither AF_INET or AF_INET6"
            )
        if not host:
            raise NetError("Couldn't construct endpoint from sockaddr(_storage) struct")
        return cls(host, int(port))

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"