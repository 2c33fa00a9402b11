import hashlib

import pytest

from htsnet.sha1 import SHA1, sha1

ABC_DIGEST = "A9993E364706816ABA3E25717850C26C9CD0D89D"
LONG_MESSAGE = b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq"
LONG_DIGEST = "84983E441C3BD26EBAAE4AA1F95129E5E54670F1"
MILLION_A_DIGEST = "34AA973CD4C4DAA4F61EEB2BDBAD27316534016F"


def test_fips_abc():
    assert SHA1(b"abc").hexdigest() == ABC_DIGEST.lower()


def test_fips_two_block_message():
    assert SHA1(LONG_MESSAGE).hexdigest() == LONG_DIGEST.lower()


def test_fips_million_a():
    hasher = SHA1()
    chunk = b"a" * 1000
    for _ in range(1000):
        hasher.update(chunk)
    assert hasher.hexdigest() == MILLION_A_DIGEST.lower()


def test_sha1_function_returns_digest_bytes():
    result = sha1(b"abc")
    assert len(result) == 20
    assert result == bytes.fromhex(ABC_DIGEST)


@pytest.mark.parametrize("length", [0, 1, 55, 56, 63, 64, 65, 119, 120, 128, 1000])
def test_matches_reference_at_padding_boundaries(length):
    data = bytes(i % 251 for i in range(length))
    assert SHA1(data).digest() == hashlib.sha1(data).digest()


def test_byte_by_byte_updates_match_single_update():
    hasher = SHA1()
    for byte in LONG_MESSAGE:
        hasher.update(bytes([byte]))
    assert hasher.digest() == sha1(LONG_MESSAGE)


def test_digest_does_not_disturb_state():
    hasher = SHA1(b"ab")
    first = hasher.digest()
    assert hasher.digest() == first
    hasher.update(b"c")
    assert hasher.hexdigest() == ABC_DIGEST.lower()


def test_accepts_bytearray_and_memoryview():
    assert sha1(bytearray(b"abc")) == sha1(memoryview(b"abc"))
    assert sha1(bytearray(b"abc")) == bytes.fromhex(ABC_DIGEST)