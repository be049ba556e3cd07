"""Threshold Schnorr signing in three rounds, without a central signing authority."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from frostsig.config import Config
from frostsig.curve import Point, Scalar, hash_to_scalar
from frostsig.polynomial import lagrange
from frostsig.session import Abort, Message, Output, ProtocolError, Session, Transcript
from frostsig.signature import CHALLENGE_TAG, Signature, tagged_hash, taproot_verify

_PROTOCOL_ID = "frost/sign-threshold"
_PROTOCOL_ID_TAPROOT = "frost/sign-threshold-taproot"
_NONCE_KEY_CONTEXT = b"frostsig 2021-07-30T09:48+00:00 derive nonce hash key"
_BINDING_DOMAIN = b"frostsig/binding-values"


@dataclass(frozen=True)
class _Broadcast2:
    d: Optional[Point]
    e: Optional[Point]


@dataclass(frozen=True)
class _Broadcast3:
    z: Optional[Scalar]


@dataclass
class _State:
    session: Session
    taproot: bool
    message: bytes
    public_key: Point
    verification_shares: Dict[str, Point]
    private_share: Scalar


def _check_sender(session: Session, message: Message) -> str:
    sender = message.sender
    if sender == session.self_id or sender not in session.party_ids:
        raise ProtocolError(f"message from unexpected party {sender!r}", sender)
    return sender


def _scalar_units(seed: bytes) -> Iterator[Scalar]:
    """Yield non-zero scalars expanded deterministically from a seed."""
    counter = 0
    while True:
        block = hashlib.shake_256(seed + counter.to_bytes(4, "big")).digest(64)
        counter += 1
        value = Scalar(int.from_bytes(block, "big"))
        if not value.is_zero():
            yield value


def _hedged_nonces(state: _State) -> Tuple[Scalar, Scalar]:
    """Derive two nonces from the secret share, the session, the message and fresh randomness."""
    hash_key = hmac.new(_NONCE_KEY_CONTEXT, state.private_share.to_bytes(), hashlib.sha256).digest()
    hasher = hashlib.blake2b(key=hash_key, digest_size=64)
    hasher.update(state.session.transcript.digest())
    hasher.update(state.message)
    hasher.update(secrets.token_bytes(32))
    units = _scalar_units(hasher.digest())
    return next(units), next(units)


class _Round1:
    number = 1

    def __init__(self, state: _State) -> None:
        self.state = state
        self.session = state.session

    def store_broadcast(self, message: Message) -> None:
        raise ProtocolError("round 1 expects no messages", message.sender)

    store_message = store_broadcast

    def finalize(self) -> Tuple["_Round2", List[Message]]:
        session = self.session
        d, e = _hedged_nonces(self.state)
        d_point, e_point = d.act_on_base(), e.act_on_base()
        message = session.broadcast(2, _Broadcast2(d_point, e_point))
        following = _Round2(
            self.state,
            d=d,
            e=e,
            d_commitments={session.self_id: d_point},
            e_commitments={session.self_id: e_point},
        )
        return following, [message]


class _Round2:
    number = 2

    def __init__(
        self,
        state: _State,
        d: Scalar,
        e: Scalar,
        d_commitments: Dict[str, Point],
        e_commitments: Dict[str, Point],
    ) -> None:
        self.state = state
        self.session = state.session
        self.d = d
        self.e = e
        self.d_commitments = d_commitments
        self.e_commitments = e_commitments

    def store_broadcast(self, message: Message) -> None:
        sender = _check_sender(self.session, message)
        body = message.content
        if not isinstance(body, _Broadcast2):
            raise ProtocolError("invalid content", sender)
        if sender in self.d_commitments:
            raise ProtocolError(f"duplicate message from party {sender}", sender)
        if not isinstance(body.d, Point) or not isinstance(body.e, Point):
            raise ProtocolError("message has nil fields", sender)
        if body.d.is_identity() or body.e.is_identity():
            raise ProtocolError("nonce commitment is the identity point", sender)
        self.d_commitments[sender] = body.d
        self.e_commitments[sender] = body.e

    def store_message(self, message: Message) -> None:
        raise ProtocolError("round 2 expects no direct messages", message.sender)

    def finalize(self) -> Tuple["_Round3", List[Message]]:
        state = self.state
        session = self.session
        ids = session.party_ids
        missing = [pid for pid in ids if pid not in self.d_commitments]
        if missing:
            raise ProtocolError(f"missing round 2 messages from {', '.join(missing)}")

        pre_hash = Transcript(_BINDING_DOMAIN).update(state.message)
        for pid in ids:
            pre_hash.update(self.d_commitments[pid], self.e_commitments[pid])
        rho = {pid: hash_to_scalar(pre_hash.clone().update(pid).digest()) for pid in ids}

        r_shares = {pid: rho[pid] * self.e_commitments[pid] + self.d_commitments[pid] for pid in ids}
        group_commitment = sum(r_shares.values(), Point.identity())
        if group_commitment.is_identity():
            raise ProtocolError("group commitment is the identity point")

        d, e = self.d, self.e
        if state.taproot:
            # BIP-340 needs R with even y: negate the nonces and their shares if it is odd.
            if not group_commitment.has_even_y():
                d, e = -d, -e
                r_shares = {pid: -share for pid, share in r_shares.items()}
            digest = tagged_hash(
                CHALLENGE_TAG,
                group_commitment.x_bytes(),
                state.public_key.x_bytes(),
                state.message,
            )
            challenge = Scalar(int.from_bytes(digest, "big"))
        else:
            challenge = hash_to_scalar(group_commitment, state.public_key, state.message)

        lambdas = lagrange(ids)
        self_id = session.self_id
        z_i = lambdas[self_id] * state.private_share * challenge + d + rho[self_id] * e

        message = session.broadcast(3, _Broadcast3(z_i))
        following = _Round3(
            state,
            group_commitment=group_commitment,
            r_shares=r_shares,
            challenge=challenge,
            responses={self_id: z_i},
            lambdas=lambdas,
        )
        return following, [message]


class _Round3:
    number = 3

    def __init__(
        self,
        state: _State,
        group_commitment: Point,
        r_shares: Dict[str, Point],
        challenge: Scalar,
        responses: Dict[str, Scalar],
        lambdas: Dict[str, Scalar],
    ) -> None:
        self.state = state
        self.session = state.session
        self.group_commitment = group_commitment
        self.r_shares = r_shares
        self.challenge = challenge
        self.responses = responses
        self.lambdas = lambdas

    def store_broadcast(self, message: Message) -> None:
        sender = _check_sender(self.session, message)
        body = message.content
        if not isinstance(body, _Broadcast3):
            raise ProtocolError("invalid content", sender)
        if sender in self.responses:
            raise ProtocolError(f"duplicate message from party {sender}", sender)
        if not isinstance(body.z, Scalar):
            raise ProtocolError("message has nil fields", sender)
        expected = (self.challenge * self.lambdas[sender]) * self.state.verification_shares[
            sender
        ] + self.r_shares[sender]
        if body.z.act_on_base() != expected:
            raise ProtocolError(f"failed to verify response from {sender}", sender)
        self.responses[sender] = body.z

    def store_message(self, message: Message) -> None:
        raise ProtocolError("round 3 expects no direct messages", message.sender)

    def finalize(self) -> Tuple[Union[Output, Abort], List[Message]]:
        state = self.state
        session = self.session
        missing = [pid for pid in session.party_ids if pid not in self.responses]
        if missing:
            raise ProtocolError(f"missing round 3 messages from {', '.join(missing)}")

        z = sum(self.responses.values(), Scalar(0))
        signature: Union[bytes, Signature]
        if state.taproot:
            signature = self.group_commitment.x_bytes() + z.to_bytes()
            valid = taproot_verify(state.public_key.x_bytes(), signature, state.message)
        else:
            signature = Signature(self.group_commitment, z)
            valid = signature.verify(state.public_key, state.message)
        if not valid:
            return Abort(session, ProtocolError("generated signature failed to verify")), []
        return Output(session, signature), []


def start_sign(
    taproot: bool,
    config: Config,
    signers: Iterable[str],
    message_hash: bytes,
    session_id: Optional[bytes] = None,
) -> _Round1:
    """Create the first signing round for this participant over a message hash."""
    if message_hash is None:
        raise ValueError("message hash is missing")
    session = Session(
        _PROTOCOL_ID_TAPROOT if taproot else _PROTOCOL_ID,
        config.id,
        signers,
        config.threshold,
        session_id,
    )
    missing = [pid for pid in session.party_ids if pid not in config.verification_shares]
    if missing:
        raise ValueError(f"missing verification shares for {', '.join(missing)}")
    return _Round1(
        _State(
            session=session,
            taproot=taproot,
            message=bytes(message_hash),
            public_key=config.public_key,
            verification_shares=dict(config.verification_shares),
            private_share=config.private_share,
        )
    )