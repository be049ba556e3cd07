"""Key material held by one participant after key generation, and key derivation."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from frostsig.curve import N, Point, Scalar, lift_x

SEC_BYTES = 32
_HARDENED = 1 << 31


def derive_scalar(public_key: Point, chain_key: bytes, index: int) -> Tuple[Scalar, bytes]:
    """Compute the BIP-32 non-hardened tweak and new chain key for a child index."""
    if not 0 <= index < _HARDENED:
        raise ValueError("only non-hardened child indices are supported")
    if public_key.is_identity():
        raise ValueError("cannot derive from the identity point")
    data = public_key.to_bytes() + index.to_bytes(4, "big")
    digest = hmac.new(bytes(chain_key), data, hashlib.sha512).digest()
    value = int.from_bytes(digest[:32], "big")
    if value >= N:
        raise ValueError("derived scalar is out of range")
    return Scalar(value), digest[32:]


def _chain_key(new_chain_key: Optional[bytes], current: bytes) -> bytes:
    chain_key = bytes(new_chain_key) if new_chain_key else bytes(current)
    if len(chain_key) != SEC_BYTES:
        raise ValueError(f"expected {SEC_BYTES} bytes for chain key, found {len(chain_key)}")
    return chain_key


@dataclass(frozen=True)
class Config:
    """The result of key generation, seen from one participant."""

    id: str
    threshold: int
    private_share: Scalar
    public_key: Point
    verification_shares: Dict[str, Point] = field(default_factory=dict)
    chain_key: bytes = b""

    def derive(self, adjust: Scalar, new_chain_key: Optional[bytes] = None) -> "Config":
        """Shift the key by adding a scalar, optionally replacing the chain key."""
        chain_key = _chain_key(new_chain_key, self.chain_key)
        adjust_g = adjust.act_on_base()
        return Config(
            id=self.id,
            threshold=self.threshold,
            private_share=self.private_share + adjust,
            public_key=self.public_key + adjust_g,
            verification_shares={k: v + adjust_g for k, v in self.verification_shares.items()},
            chain_key=chain_key,
        )

    def derive_child(self, index: int) -> "Config":
        """Derive the shares of the BIP-32 child key at the given index."""
        scalar, chain_key = derive_scalar(self.public_key, self.chain_key, index)
        return self.derive(scalar, chain_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "threshold": self.threshold,
            "private_share": self.private_share.to_bytes().hex(),
            "public_key": self.public_key.to_bytes().hex(),
            "chain_key": self.chain_key.hex(),
            "verification_shares": {
                k: v.to_bytes().hex() for k, v in self.verification_shares.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return cls(
            id=data["id"],
            threshold=int(data["threshold"]),
            private_share=Scalar.from_bytes(bytes.fromhex(data["private_share"])),
            public_key=Point.from_bytes(bytes.fromhex(data["public_key"])),
            verification_shares={
                k: Point.from_bytes(bytes.fromhex(v)) for k, v in data["verification_shares"].items()
            },
            chain_key=bytes.fromhex(data.get("chain_key", "")),
        )


@dataclass(frozen=True)
class TaprootConfig:
    """Like Config, but the public key is a 32-byte BIP-340 x-only key."""

    id: str
    threshold: int
    private_share: Scalar
    public_key: bytes
    verification_shares: Dict[str, Point] = field(default_factory=dict)
    chain_key: bytes = b""

    def clone(self) -> "TaprootConfig":
        return TaprootConfig(
            id=self.id,
            threshold=self.threshold,
            private_share=self.private_share,
            public_key=bytes(self.public_key),
            verification_shares=dict(self.verification_shares),
            chain_key=bytes(self.chain_key),
        )

    def derive(self, adjust: Scalar, new_chain_key: Optional[bytes] = None) -> "TaprootConfig":
        """Shift the key by a scalar, keeping the shared secret matched to an even-y key."""
        chain_key = _chain_key(new_chain_key, self.chain_key)
        adjust_g = adjust.act_on_base()
        shares = {k: v + adjust_g for k, v in self.verification_shares.items()}
        private_share = self.private_share + adjust
        public = lift_x(self.public_key) + adjust_g
        if public.is_identity():
            raise ValueError("derived public key is the identity")
        if not public.has_even_y():
            private_share = -private_share
            shares = {k: -v for k, v in shares.items()}
        return TaprootConfig(
            id=self.id,
            threshold=self.threshold,
            private_share=private_share,
            public_key=public.x_bytes(),
            verification_shares=shares,
            chain_key=chain_key,
        )

    def derive_child(self, index: int) -> "TaprootConfig":
        """Derive the BIP-32 child, treating the x-only key as having even y."""
        scalar, chain_key = derive_scalar(lift_x(self.public_key), self.chain_key, index)
        return self.derive(scalar, chain_key)