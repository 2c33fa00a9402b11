# htsnet

A small networking toolkit with no third-party dependencies.

- `htsnet.strings`: backslash unescaping (`unescape`), shell-like argument
  splitting with double quotes (`argsplit`) and `%x` placeholder
  substitution (`format_string`).
- `htsnet.sha1`: a self-contained SHA-1. `SHA1` is an incremental hasher
  with `update`, `digest` and `hexdigest`. `sha1(data)` returns the 20-byte
  digest.
- `htsnet.tcp`: blocking TCP helpers.
  - `tcp_connect(hostname, port, timeout)` tries every address the name
    resolves to, allowing `timeout` milliseconds for each attempt. It returns
    a blocking socket with `TCP_NODELAY` set.
  - `tcp_write_queue(sock, chunks)` sends a list of chunks and then empties
    the list.
  - `tcp_read_line(sock, spill, max_length)` reads one line. It strips
    trailing control characters and keeps any extra bytes in the `spill`
    bytearray.
  - `tcp_read_data(sock, length, spill)`, `tcp_read(sock, length)` and
    `tcp_read_timeout(sock, length, timeout)` read exactly `length` bytes.
  - `tcp_close(sock)` closes the connection.
  - Failures raise `TcpError`, a subclass of `OSError`.
- `htsnet.endpoint`: `Endpoint` (an address and a port, built directly, with
  `Endpoint.parse("host:port")` or with `Endpoint.from_sockaddr`), plus
  `Protocol`, `SelectFlags`, `SocketStatus`, `is_valid_port_number` and
  `NetError`.
- `htsnet.kisssocket`: a `Socket` class for TCP, TLS-over-TCP and UDP. Use
  it through the `tcp_socket`, `tcp_ssl_socket` and `udp_socket` helpers.
  - `send` returns `(bytes_sent, SocketStatus)` and `recv` returns
    `(data, SocketStatus)`. Only `SocketStatus.ERRORED` is false.
  - Fatal problems raise `NetError`.
  - `Socket` works as a context manager and closes itself on exit.

## Install

```
pip install .
```

## Examples

```python
from htsnet.strings import argsplit, format_string
from htsnet.sha1 import SHA1, sha1
from htsnet.endpoint import Endpoint

argsplit('play "my file.ts" now')                   # ['play', 'my file.ts', 'now']
format_string("%n-%d", {"n": "news", "d": "2024"})  # 'news-2024'
sha1(b"abc").hex()                                  # 'a9993e364706816aba3e25717850c26c9cd0d89d'
SHA1(b"abc").hexdigest()                            # same value
Endpoint.parse("localhost:9982")                    # Endpoint(address='localhost', port=9982)
```

```python
from htsnet.tcp import tcp_connect, tcp_read_line, tcp_close

sock = tcp_connect("localhost", 9982, 5000)   # timeout in milliseconds
spill = bytearray()
line = tcp_read_line(sock, spill, 1024)       # bytes, without the line ending
tcp_close(sock)
```

```python
from htsnet.endpoint import Endpoint
from htsnet.kisssocket import tcp_socket

with tcp_socket(Endpoint("localhost", 9982)) as sock:
    if sock.connect(2000):                    # timeout in milliseconds
        sent, status = sock.send(b"hello")
        data, status = sock.recv(1024, True)
```

## Notes

- TLS sockets made with `tcp_ssl_socket` use TLS 1.2 and do not verify the
  server certificate or host name.
- `Socket.bytes_available` needs `fcntl` and `termios`. It raises `NetError`
  on platforms without them.

## What this package does not do

This package only moves bytes and provides the helpers listed above. It does
not encode or decode any application protocol messages, and it has no
command-line program or server of its own.

## Tests

```
pip install .[test]
pytest
```