"""Digest provider: maps algorithm identifiers to streaming hashers."""

import functools
import hashlib
import logging
import zlib
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Protocol, Union

import crcmod
import xxhash

logger = logging.getLogger(__name__)

# Read size used when streaming file contents through a hasher
DIGEST_CHUNK_SIZE = 65536  # 64 KB chunks


class Hasher(Protocol):
    """Streaming hash object: feed bytes, read a fixed-length digest."""

    def update(self, data: bytes) -> None: ...

    def digest(self) -> bytes: ...

    def hexdigest(self) -> str: ...


class DigestAlgorithm(str, Enum):
    """Supported digest algorithms, keyed by their command-line identifier."""

    CRC32 = "crc32"
    CRC64 = "crc64"
    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"
    SHA3_256 = "sha3-256"
    SHA3_512 = "sha3-512"
    BLAKE2B_256 = "blake2b-256"
    BLAKE2B_512 = "blake2b-512"
    XXH64 = "xxh64"
    XXH3_64 = "xxh3-64"
    XXH3_128 = "xxh3-128"
    WHIRLPOOL = "whirlpool"


DEFAULT_ALGORITHM = DigestAlgorithm.SHA256


class Crc32Hasher:
    """IEEE CRC-32 with the hashlib interface.

    The digest is the checksum as 4 big-endian bytes, so ``hexdigest()``
    is always 8 lowercase hex characters.
    """

    digest_size = 4
    name = "crc32"

    def __init__(self) -> None:
        self._crc = 0

    def update(self, data: bytes) -> None:
        self._crc = zlib.crc32(data, self._crc)

    def digest(self) -> bytes:
        return (self._crc & 0xFFFFFFFF).to_bytes(4, "big")

    def hexdigest(self) -> str:
        return f"{self._crc & 0xFFFFFFFF:08x}"


# crcmod's initCrc is the register start XORed with xorOut: all-ones ^ all-ones
_CRC64_ISO = crcmod.Crc(0x1000000000000001B, initCrc=0, rev=True, xorOut=0xFFFFFFFFFFFFFFFF)


class Crc64Hasher:
    """CRC-64 over the ISO 3309 polynomial, pre- and post-inverted.

    Same parameters as Go's ``crc64.New(crc64.MakeTable(crc64.ISO))``
    (check value for ``b"123456789"`` is ``b90956c775a41001``).
    """

    digest_size = 8
    name = "crc64"

    def __init__(self) -> None:
        self._crc = _CRC64_ISO.new()

    def update(self, data: bytes) -> None:
        self._crc.update(data)

    def digest(self) -> bytes:
        return self._crc.crcValue.to_bytes(8, "big")

    def hexdigest(self) -> str:
        return f"{self._crc.crcValue:016x}"


def _whirlpool() -> Hasher:
    # Provided by OpenSSL; raises ValueError where the legacy provider is absent
    return hashlib.new("whirlpool")


_CONSTRUCTORS: Dict[DigestAlgorithm, Callable[[], Hasher]] = {
    DigestAlgorithm.CRC32: Crc32Hasher,
    DigestAlgorithm.CRC64: Crc64Hasher,
    DigestAlgorithm.MD5: hashlib.md5,
    DigestAlgorithm.SHA1: hashlib.sha1,
    DigestAlgorithm.SHA256: hashlib.sha256,
    DigestAlgorithm.SHA512: hashlib.sha512,
    DigestAlgorithm.SHA3_256: hashlib.sha3_256,
    DigestAlgorithm.SHA3_512: hashlib.sha3_512,
    DigestAlgorithm.BLAKE2B_256: lambda: hashlib.blake2b(digest_size=32),
    DigestAlgorithm.BLAKE2B_512: hashlib.blake2b,
    DigestAlgorithm.XXH64: xxhash.xxh64,
    DigestAlgorithm.XXH3_64: xxhash.xxh3_64,
    DigestAlgorithm.XXH3_128: xxhash.xxh3_128,
    DigestAlgorithm.WHIRLPOOL: _whirlpool,
}


@functools.lru_cache(maxsize=None)
def is_available(algorithm: DigestAlgorithm) -> bool:
    """True if a hasher for algorithm can be built on this interpreter."""
    try:
        _CONSTRUCTORS[algorithm]()
    except ValueError:
        return False
    return True


def supported_algorithms() -> list[str]:
    """Identifiers usable on this interpreter, in declaration order."""
    return [algorithm.value for algorithm in DigestAlgorithm if is_available(algorithm)]


def resolve_algorithm(name: Union[str, DigestAlgorithm]) -> DigestAlgorithm:
    """
    Map an algorithm identifier to a DigestAlgorithm.

    Unknown identifiers never fail: they are reported with a warning and
    replaced by DEFAULT_ALGORITHM. The same applies to known algorithms the
    local hashing backend cannot provide.

    Args:
        name: Identifier such as "sha256" (case-insensitive) or an enum member

    Returns:
        The matching DigestAlgorithm, or DEFAULT_ALGORITHM
    """
    if isinstance(name, DigestAlgorithm):
        algorithm = name
    else:
        try:
            algorithm = DigestAlgorithm(str(name).strip().lower())
        except ValueError:
            logger.warning(
                f"unsupported hash algorithm {name!r}, falling back to {DEFAULT_ALGORITHM.value}"
            )
            return DEFAULT_ALGORITHM

    if not is_available(algorithm):
        logger.warning(
            f"hash algorithm {algorithm.value!r} is not available on this platform, "
            f"falling back to {DEFAULT_ALGORITHM.value}"
        )
        return DEFAULT_ALGORITHM
    return algorithm


def new_hasher(algorithm: Union[str, DigestAlgorithm]) -> Hasher:
    """Return a fresh, independent hasher for one stream."""
    return _CONSTRUCTORS[resolve_algorithm(algorithm)]()


def compute_file_digest(
    file_path: Path,
    algorithm: Union[str, DigestAlgorithm] = DEFAULT_ALGORITHM,
    chunk_size: int = DIGEST_CHUNK_SIZE,
) -> str:
    """
    Stream an entire file through a new hasher.

    Args:
        file_path: Path to the file
        algorithm: Digest algorithm (enum member or identifier)
        chunk_size: Bytes read per call

    Returns:
        Lowercase hexadecimal digest

    Raises:
        OSError: If file cannot be opened or read
    """
    hasher = new_hasher(algorithm)

    with open(file_path, 'rb') as f:
        while chunk := f.read(chunk_size):
            hasher.update(chunk)

    return hasher.hexdigest()
