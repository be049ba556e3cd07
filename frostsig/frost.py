"""Entry points for threshold key generation, refresh and signing."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from frostsig.config import Config, TaprootConfig
from frostsig.curve import lift_x
from frostsig.keygen import start_keygen
from frostsig.sign import start_sign

StartFunc = Callable[[Optional[bytes]], Any]


def keygen(self_id: str, participants: Iterable[str], threshold: int) -> StartFunc:
    """Start key generation; threshold + 1 participants will be needed to sign."""
    participants = tuple(participants)

    def start(session_id: Optional[bytes] = None):
        return start_keygen(False, participants, threshold, self_id, session_id=session_id)

    return start


def keygen_taproot(self_id: str, participants: Iterable[str], threshold: int) -> StartFunc:
    """Like keygen, but the result is a TaprootConfig with a BIP-340 key."""
    participants = tuple(participants)

    def start(session_id: Optional[bytes] = None):
        return start_keygen(True, participants, threshold, self_id, session_id=session_id)

    return start


def refresh(config: Config, participants: Iterable[str]) -> StartFunc:
    """Start a refresh of the shares, keeping the public key unchanged."""
    participants = tuple(participants)

    def start(session_id: Optional[bytes] = None):
        return start_keygen(
            False,
            participants,
            config.threshold,
            config.id,
            config.private_share,
            config.public_key,
            dict(config.verification_shares),
            session_id,
        )

    return start


def refresh_taproot(config: TaprootConfig, participants: Iterable[str]) -> StartFunc:
    """Like refresh, for a TaprootConfig."""
    participants = tuple(participants)

    def start(session_id: Optional[bytes] = None):
        public_key = lift_x(config.public_key)
        return start_keygen(
            True,
            participants,
            config.threshold,
            config.id,
            config.private_share,
            public_key,
            dict(config.verification_shares),
            session_id,
        )

    return start


def sign(config: Config, signers: Iterable[str], message_hash: bytes) -> StartFunc:
    """Start threshold signing of a message hash, producing a Signature."""
    signers = tuple(signers)

    def start(session_id: Optional[bytes] = None):
        return start_sign(False, config, signers, message_hash, session_id)

    return start


def sign_taproot(config: TaprootConfig, signers: Iterable[str], message_hash: bytes) -> StartFunc:
    """Start threshold signing producing a 64-byte BIP-340 signature."""
    signers = tuple(signers)

    def start(session_id: Optional[bytes] = None):
        normal = Config(
            id=config.id,
            threshold=config.threshold,
            private_share=config.private_share,
            public_key=lift_x(config.public_key),
            verification_shares=dict(config.verification_shares),
        )
        return start_sign(True, normal, signers, message_hash, session_id)

    return start