"""Schnorr signatures over secp256k1, in a generic form and in the BIP-340 form."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from frostsig.curve import N, P, Point, Scalar, hash_to_scalar, lift_x

TAPROOT_SIGNATURE_LENGTH = 64
CHALLENGE_TAG = "BIP0340/challenge"


def tagged_hash(tag: str, *args: bytes) -> bytes:
    """Compute SHA256(SHA256(tag) || SHA256(tag) || args...)."""
    tag_digest = hashlib.sha256(tag.encode("utf-8")).digest()
    hasher = hashlib.sha256(tag_digest + tag_digest)
    for item in args:
        hasher.update(bytes(item))
    return hasher.digest()


@dataclass(frozen=True)
class Signature:
    """A Schnorr signature satisfying z * G = R + H(R, Y, m) * Y."""

    r: Point
    z: Scalar

    def verify(self, public: Point, message: bytes) -> bool:
        """Check the signature against a public key and a message hash."""
        challenge = hash_to_scalar(self.r, public, bytes(message))
        return self.z.act_on_base() == challenge * public + self.r

    def to_bytes(self) -> bytes:
        return self.r.to_bytes() + self.z.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Signature":
        data = bytes(data)
        if len(data) != 65:
            raise ValueError(f"expected 65 bytes for a signature, found {len(data)}")
        return cls(Point.from_bytes(data[:33]), Scalar.from_bytes(data[33:]))


def taproot_verify(public_key: bytes, signature: bytes, message: bytes) -> bool:
    """Verify a BIP-340 signature for a 32-byte x-only public key."""
    public_key = bytes(public_key)
    signature = bytes(signature)
    if len(signature) != TAPROOT_SIGNATURE_LENGTH:
        return False
    try:
        public = lift_x(public_key)
    except ValueError:
        return False
    r_bytes, s_bytes = signature[:32], signature[32:]
    r = int.from_bytes(r_bytes, "big")
    s = int.from_bytes(s_bytes, "big")
    if r >= P or s >= N:
        return False
    challenge = Scalar(int.from_bytes(tagged_hash(CHALLENGE_TAG, r_bytes, public_key, bytes(message)), "big"))
    point = Scalar(s).act_on_base() - challenge * public
    return not point.is_identity() and point.has_even_y() and point.x == r