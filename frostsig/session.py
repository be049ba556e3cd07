"""Shared machinery for round-based protocols: transcripts, messages, sessions and a driver."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from frostsig.curve import Point, Scalar

COMMITMENT_LENGTH = 32
DECOMMITMENT_LENGTH = 32
_TRANSCRIPT_DOMAIN = b"frostsig/transcript"


class ProtocolError(Exception):
    """A protocol message was malformed, inconsistent, missing or unexpected."""

    def __init__(self, message: str, culprit: Optional[str] = None) -> None:
        super().__init__(message)
        self.culprit = culprit


def _encode(item: object) -> bytes:
    if isinstance(item, Point):
        tag, payload = b"P", item.to_bytes()
    elif isinstance(item, Scalar):
        tag, payload = b"S", item.to_bytes()
    elif isinstance(item, (bytes, bytearray, memoryview)):
        tag, payload = b"B", bytes(item)
    elif isinstance(item, str):
        tag, payload = b"T", item.encode("utf-8")
    elif isinstance(item, int):
        tag, payload = b"I", item.to_bytes((item.bit_length() + 8) // 8, "big", signed=True)
    elif isinstance(item, (list, tuple)):
        tag = b"L"
        payload = len(item).to_bytes(8, "big") + b"".join(_encode(x) for x in item)
    else:
        raise TypeError(f"cannot add value of type {type(item).__name__} to a transcript")
    return tag + len(payload).to_bytes(8, "big") + payload


class Transcript:
    """A running hash of typed, length-prefixed values."""

    def __init__(self, domain: bytes = _TRANSCRIPT_DOMAIN) -> None:
        self._state = hashlib.sha256(_encode(bytes(domain)))

    def update(self, *args: object) -> "Transcript":
        for item in args:
            self._state.update(_encode(item))
        return self

    def clone(self) -> "Transcript":
        copy = Transcript.__new__(Transcript)
        copy._state = self._state.copy()
        return copy

    def digest(self) -> bytes:
        """Return the current 32-byte digest without changing the state."""
        return self._state.digest()

    def commit(self, data: object) -> Tuple[bytes, bytes]:
        """Commit to data, returning (commitment, decommitment)."""
        decommitment = secrets.token_bytes(DECOMMITMENT_LENGTH)
        commitment = self.clone().update(data, decommitment).digest()
        return commitment, decommitment

    def decommit(self, commitment: bytes, decommitment: bytes, data: object) -> bool:
        """Check that a commitment opens to data under this transcript."""
        commitment = bytes(commitment)
        decommitment = bytes(decommitment)
        if len(commitment) != COMMITMENT_LENGTH or len(decommitment) != DECOMMITMENT_LENGTH:
            return False
        expected = self.clone().update(data, decommitment).digest()
        return hmac.compare_digest(expected, commitment)


@dataclass(frozen=True)
class Message:
    """A protocol message for a given round; to is None for a broadcast."""

    sender: str
    round_number: int
    content: Any
    to: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.to is None


class Session:
    """The fixed context of one protocol run as seen from one party."""

    def __init__(
        self,
        protocol_id: str,
        self_id: str,
        party_ids: Iterable[str],
        threshold: int,
        session_id: Optional[bytes] = None,
    ) -> None:
        ids = tuple(sorted(party_ids))
        if not ids:
            raise ValueError("no parties given")
        if any(not pid for pid in ids):
            raise ValueError("party IDs must be non-empty")
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate party IDs")
        if self_id not in ids:
            raise ValueError(f"party {self_id!r} is not among the participants")
        if not 0 <= threshold < len(ids):
            raise ValueError(f"threshold {threshold} is invalid for {len(ids)} parties")
        self.protocol_id = protocol_id
        self.self_id = self_id
        self.party_ids = ids
        self.threshold = threshold
        self.session_id = bytes(session_id or b"")
        self.transcript = Transcript().update(
            protocol_id, "secp256k1", list(ids), threshold, self.session_id
        )

    def hash_for_id(self, party_id: str) -> Transcript:
        """Return a copy of the session transcript bound to one party."""
        return self.transcript.clone().update(party_id)

    def other_party_ids(self) -> Tuple[str, ...]:
        return tuple(pid for pid in self.party_ids if pid != self.self_id)

    def broadcast(self, round_number: int, content: Any) -> Message:
        return Message(self.self_id, round_number, content)

    def send(self, round_number: int, content: Any, to: str) -> Message:
        if to == self.self_id:
            raise ValueError("cannot send a direct message to ourselves")
        if to not in self.party_ids:
            raise ValueError(f"party {to!r} is not among the participants")
        return Message(self.self_id, round_number, content, to)


@dataclass(frozen=True)
class Output:
    """The final state of a party that finished a protocol successfully."""

    session: Session
    result: Any

    @property
    def self_id(self) -> str:
        return self.session.self_id


@dataclass(frozen=True)
class Abort:
    """The final state of a party that stopped the protocol because of an error."""

    session: Session
    error: Exception
    culprits: Tuple[str, ...] = ()

    @property
    def self_id(self) -> str:
        return self.session.self_id


def _finished(state: object) -> bool:
    return isinstance(state, (Output, Abort))


def run_rounds(rounds: Sequence[Any]) -> List[Any]:
    """Drive a set of parties through a protocol until each reaches Output or Abort.

    Each round has a session and a number, and methods finalize() returning
    (next_round, messages), store_broadcast(message) and store_message(message).
    Messages whose round number differs from the receiving round raise ProtocolError.
    """
    current = list(rounds)
    while not all(_finished(r) for r in current):
        outgoing: List[Message] = []
        advanced = []
        for state in current:
            if _finished(state):
                advanced.append(state)
                continue
            following, messages = state.finalize()
            advanced.append(following)
            outgoing.extend(messages)
        current = advanced
        for message in outgoing:
            for state in current:
                if _finished(state):
                    continue
                receiver = state.session.self_id
                if receiver == message.sender:
                    continue
                if message.to is not None and message.to != receiver:
                    continue
                if message.round_number != state.number:
                    raise ProtocolError(
                        f"message for round {message.round_number} reached round {state.number}",
                        message.sender,
                    )
                if message.is_broadcast:
                    state.store_broadcast(message)
                else:
                    state.store_message(message)
    return current