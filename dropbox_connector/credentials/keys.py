"""
Deterministic RSA key derivation.

`cryptography` only generates RSA keys from the operating system's random
source, so the primes are searched here from a byte stream expanded from a
fixed seed and the resulting numbers are handed to `cryptography` to build
the actual key object. The same seed and size always yield the same key.
"""

import hashlib
import hmac
import logging
import math
import time

from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT = 65537
MILLER_RABIN_ROUNDS = 8


def _small_primes(limit: int):
    sieve = bytearray([1]) * limit
    sieve[0:2] = b"\x00\x00"
    for i in range(2, int(limit ** 0.5) + 1):
        if sieve[i]:
            sieve[i * i::i] = bytearray(len(sieve[i * i::i]))
    return [i for i in range(3, limit) if sieve[i]]


SMALL_PRIMES = _small_primes(2000)


class SeededByteStream:
    """HMAC-SHA256 counter-mode expansion of a seed into an endless byte stream."""

    def __init__(self, seed: bytes, label: bytes = b"rsa-keygen"):
        self._key = hmac.new(seed, label, hashlib.sha256).digest()
        self._counter = 0
        self._buffer = b""

    def read(self, size: int) -> bytes:
        while len(self._buffer) < size:
            block = hmac.new(
                self._key, self._counter.to_bytes(8, "big"), hashlib.sha256
            ).digest()
            self._buffer += block
            self._counter += 1
        out, self._buffer = self._buffer[:size], self._buffer[size:]
        return out

    def randint_below(self, upper: int) -> int:
        """Uniform integer in [0, upper) by rejection sampling."""
        nbytes = (upper.bit_length() + 7) // 8
        while True:
            value = int.from_bytes(self.read(nbytes), "big") >> (nbytes * 8 - upper.bit_length())
            if value < upper:
                return value


def is_probable_prime(n: int, stream: SeededByteStream, rounds: int = MILLER_RABIN_ROUNDS) -> bool:
    """Miller-Rabin with witnesses drawn from the seeded stream."""
    if n < 4:
        return n in (2, 3)
    if n % 2 == 0:
        return False

    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for _ in range(rounds):
        a = 2 + stream.randint_below(n - 3)
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def generate_prime(bits: int, stream: SeededByteStream) -> int:
    """Find a `bits`-bit prime p with gcd(p - 1, e) == 1."""
    nbytes = (bits + 7) // 8
    while True:
        candidate = int.from_bytes(stream.read(nbytes), "big") >> (nbytes * 8 - bits)
        # Top two bits set so that p * q has exactly 2 * bits bits.
        candidate |= (1 << (bits - 1)) | (1 << (bits - 2)) | 1

        if any(candidate % p == 0 for p in SMALL_PRIMES):
            continue
        if math.gcd(candidate - 1, PUBLIC_EXPONENT) != 1:
            continue
        if is_probable_prime(candidate, stream):
            return candidate


def derive_private_key(seed: bytes, key_bits: int) -> rsa.RSAPrivateKey:
    """
    Derive an RSA private key from a seed.

    Args:
        seed: Secret seed bytes
        key_bits: Modulus size, a multiple of 16

    Returns:
        The private key; identical for identical arguments
    """
    started = time.monotonic()
    stream = SeededByteStream(seed, label=b"rsa-keygen-%d" % key_bits)

    p = generate_prime(key_bits // 2, stream)
    q = generate_prime(key_bits // 2, stream)
    while q == p:
        q = generate_prime(key_bits // 2, stream)
    if p < q:
        p, q = q, p

    lam = (p - 1) * (q - 1) // math.gcd(p - 1, q - 1)
    d = pow(PUBLIC_EXPONENT, -1, lam)

    numbers = rsa.RSAPrivateNumbers(
        p=p,
        q=q,
        d=d,
        dmp1=rsa.rsa_crt_dmp1(d, p),
        dmq1=rsa.rsa_crt_dmq1(d, q),
        iqmp=rsa.rsa_crt_iqmp(p, q),
        public_numbers=rsa.RSAPublicNumbers(PUBLIC_EXPONENT, p * q),
    )
    key = numbers.private_key()

    logger.info(
        f"Derived {key_bits}-bit credential key in {time.monotonic() - started:.2f}s"
    )
    return key
