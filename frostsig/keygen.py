"""Distributed key generation and share refresh for threshold Schnorr signatures."""

from __future__ import annotations

import functools
import secrets
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from frostsig.config import SEC_BYTES, Config, TaprootConfig
from frostsig.curve import Point, Scalar, hash_to_scalar
from frostsig.polynomial import Exponent, Polynomial, id_scalar
from frostsig.session import (
    COMMITMENT_LENGTH,
    Message,
    Output,
    ProtocolError,
    Session,
    Transcript,
)

_PROTOCOL_ID = "frost/keygen-threshold"
_PROTOCOL_ID_TAPROOT = "frost/keygen-threshold-taproot"


@dataclass(frozen=True)
class _SchnorrProof:
    commitment: Point
    response: Scalar

    @staticmethod
    def _challenge(transcript: Transcript, public: Point, commitment: Point) -> Scalar:
        return hash_to_scalar(transcript.digest(), public, commitment)

    @classmethod
    def create(cls, transcript: Transcript, public: Point, secret: Scalar) -> "_SchnorrProof":
        nonce = Scalar.random()
        commitment = nonce.act_on_base()
        challenge = cls._challenge(transcript, public, commitment)
        return cls(commitment, nonce + challenge * secret)

    def is_valid(self) -> bool:
        return not self.commitment.is_identity() and not self.response.is_zero()

    def verify(self, transcript: Transcript, public: Point) -> bool:
        if not self.is_valid():
            return False
        challenge = self._challenge(transcript, public, self.commitment)
        return self.response.act_on_base() == self.commitment + challenge * public


@dataclass(frozen=True)
class _Broadcast2:
    phi: Optional[Exponent]
    sigma: Optional[_SchnorrProof]
    commitment: bytes


@dataclass(frozen=True)
class _Broadcast3:
    chain_key: bytes
    decommitment: bytes


@dataclass(frozen=True)
class _Direct3:
    share: Optional[Scalar]


@dataclass
class _State:
    session: Session
    taproot: bool
    threshold: int
    refresh: bool
    private_share: Scalar
    public_key: Point
    verification_shares: Dict[str, Point]


def _check_sender(session: Session, message: Message) -> str:
    sender = message.sender
    if sender == session.self_id or sender not in session.party_ids:
        raise ProtocolError(f"message from unexpected party {sender!r}", sender)
    return sender


class _Round1:
    number = 1

    def __init__(self, state: _State) -> None:
        self.state = state
        self.session = state.session

    def store_broadcast(self, message: Message) -> None:
        raise ProtocolError("round 1 expects no messages", message.sender)

    store_message = store_broadcast

    def finalize(self) -> Tuple["_Round2", List[Message]]:
        state = self.state
        session = self.session
        if state.refresh:
            secret = Scalar(0)
        else:
            secret = Scalar.random()
        polynomial = Polynomial.random(state.threshold, secret)
        sigma = None
        if not state.refresh:
            sigma = _SchnorrProof.create(
                session.hash_for_id(session.self_id), secret.act_on_base(), secret
            )
        phi = Exponent.from_polynomial(polynomial)
        chain_key = secrets.token_bytes(SEC_BYTES)
        commitment, decommitment = session.hash_for_id(session.self_id).commit(chain_key)
        message = session.broadcast(2, _Broadcast2(phi, sigma, commitment))
        following = _Round2(
            state,
            polynomial=polynomial,
            phi={session.self_id: phi},
            chain_keys={session.self_id: chain_key},
            decommitment=decommitment,
        )
        return following, [message]


class _Round2:
    number = 2

    def __init__(
        self,
        state: _State,
        polynomial: Polynomial,
        phi: Dict[str, Exponent],
        chain_keys: Dict[str, bytes],
        decommitment: bytes,
    ) -> None:
        self.state = state
        self.session = state.session
        self.polynomial = polynomial
        self.phi = phi
        self.chain_keys = chain_keys
        self.decommitment = decommitment
        self.commitments: Dict[str, bytes] = {}

    def store_broadcast(self, message: Message) -> None:
        sender = _check_sender(self.session, message)
        body = message.content
        if not isinstance(body, _Broadcast2):
            raise ProtocolError("invalid content", sender)
        if sender in self.phi:
            raise ProtocolError(f"duplicate message from party {sender}", sender)
        if body.phi is None or (
            not self.state.refresh and (body.sigma is None or not body.sigma.is_valid())
        ):
            raise ProtocolError("message has nil fields", sender)
        if len(bytes(body.commitment)) != COMMITMENT_LENGTH:
            raise ProtocolError("commitment: invalid length", sender)
        if body.phi.degree != self.state.threshold:
            raise ProtocolError(f"party {sender} sent a polynomial of the wrong degree", sender)
        if self.state.refresh:
            if not body.phi.constant().is_identity():
                raise ProtocolError(
                    f"party {sender} sent a non-zero constant while refreshing", sender
                )
        elif not body.sigma.verify(self.session.hash_for_id(sender), body.phi.constant()):
            raise ProtocolError(f"failed to verify Schnorr proof for party {sender}", sender)
        self.phi[sender] = body.phi
        self.commitments[sender] = bytes(body.commitment)

    def store_message(self, message: Message) -> None:
        raise ProtocolError("round 2 expects no direct messages", message.sender)

    def finalize(self) -> Tuple["_Round3", List[Message]]:
        session = self.session
        missing = [pid for pid in session.party_ids if pid not in self.phi]
        if missing:
            raise ProtocolError(f"missing round 2 messages from {', '.join(missing)}")
        messages = [
            session.broadcast(3, _Broadcast3(self.chain_keys[session.self_id], self.decommitment))
        ]
        messages += [
            session.send(3, _Direct3(self.polynomial.evaluate(id_scalar(pid))), pid)
            for pid in session.other_party_ids()
        ]
        self_share = self.polynomial.evaluate(id_scalar(session.self_id))
        return _Round3(self, {session.self_id: self_share}), messages


class _Round3:
    number = 3

    def __init__(self, previous: _Round2, shares: Dict[str, Scalar]) -> None:
        self.state = previous.state
        self.session = previous.session
        self.phi = previous.phi
        self.chain_keys = previous.chain_keys
        self.commitments = previous.commitments
        self.shares = shares
        self._opened = {self.session.self_id}

    def store_broadcast(self, message: Message) -> None:
        sender = _check_sender(self.session, message)
        body = message.content
        if not isinstance(body, _Broadcast3):
            raise ProtocolError("invalid content", sender)
        if sender in self._opened:
            raise ProtocolError(f"duplicate message from party {sender}", sender)
        chain_key = bytes(body.chain_key)
        if len(chain_key) != SEC_BYTES:
            raise ProtocolError("chain key contribution has the wrong length", sender)
        if not self.session.hash_for_id(sender).decommit(
            self.commitments[sender], body.decommitment, chain_key
        ):
            raise ProtocolError("failed to verify chain key commitment", sender)
        self.chain_keys[sender] = chain_key
        self._opened.add(sender)

    def store_message(self, message: Message) -> None:
        sender = _check_sender(self.session, message)
        body = message.content
        if not isinstance(body, _Direct3):
            raise ProtocolError("invalid content", sender)
        if body.share is None:
            raise ProtocolError("message has nil fields", sender)
        if sender in self.shares:
            raise ProtocolError(f"duplicate message from party {sender}", sender)
        expected = body.share.act_on_base()
        actual = self.phi[sender].evaluate(id_scalar(self.session.self_id))
        if expected != actual:
            raise ProtocolError("VSS failed to validate", sender)
        self.shares[sender] = body.share

    def finalize(self) -> Tuple[Output, List[Message]]:
        state = self.state
        session = self.session
        missing = [
            pid
            for pid in session.party_ids
            if pid not in self.shares or pid not in self._opened
        ]
        if missing:
            raise ProtocolError(f"missing round 3 messages from {', '.join(missing)}")

        chain_key = functools.reduce(
            lambda acc, key: bytes(a ^ b for a, b in zip(acc, key)),
            (self.chain_keys[pid] for pid in session.party_ids),
            bytes(SEC_BYTES),
        )
        private_share = sum(self.shares.values(), state.private_share)
        public_key = sum((phi.constant() for phi in self.phi.values()), state.public_key)
        exponent = Exponent.sum(self.phi.values())
        verification_shares = {
            pid: share + exponent.evaluate(id_scalar(pid))
            for pid, share in state.verification_shares.items()
        }

        if state.taproot:
            if not public_key.has_even_y():
                private_share = -private_share
                verification_shares = {k: -v for k, v in verification_shares.items()}
            result = TaprootConfig(
                id=session.self_id,
                threshold=state.threshold,
                private_share=private_share,
                public_key=public_key.x_bytes(),
                verification_shares=verification_shares,
                chain_key=chain_key,
            )
        else:
            result = Config(
                id=session.self_id,
                threshold=state.threshold,
                private_share=private_share,
                public_key=public_key,
                verification_shares=verification_shares,
                chain_key=chain_key,
            )
        return Output(session, result), []


def start_keygen(
    taproot: bool,
    participants: Iterable[str],
    threshold: int,
    self_id: str,
    private_share: Optional[Scalar] = None,
    public_key: Optional[Point] = None,
    verification_shares: Optional[Mapping[str, Point]] = None,
    session_id: Optional[bytes] = None,
) -> _Round1:
    """Create the first round of key generation, or of a refresh when a key is given."""
    session = Session(
        _PROTOCOL_ID_TAPROOT if taproot else _PROTOCOL_ID,
        self_id,
        participants,
        threshold,
        session_id,
    )
    refresh = private_share is not None and public_key is not None
    if refresh:
        shares = dict(verification_shares or {})
        missing = [pid for pid in session.party_ids if pid not in shares]
        if missing:
            raise ValueError(f"missing verification shares for {', '.join(missing)}")
    else:
        private_share = Scalar(0)
        public_key = Point.identity()
        shares = {pid: Point.identity() for pid in session.party_ids}
    return _Round1(
        _State(
            session=session,
            taproot=taproot,
            threshold=threshold,
            refresh=refresh,
            private_share=private_share,
            public_key=public_key,
            verification_shares=shares,
        )
    )