import pytest

from frostsig.curve import Scalar
from frostsig.session import (
    Abort,
    Message,
    Output,
    ProtocolError,
    Session,
    Transcript,
    run_rounds,
)

IDS = ["a", "b", "c"]


def test_transcript_digest_is_deterministic():
    first = Transcript().update("x", b"y", 5).digest()
    second = Transcript().update("x", b"y", 5).digest()
    assert first == second
    assert len(first) == 32


def test_transcript_order_matters():
    assert Transcript().update("x", "y").digest() != Transcript().update("y", "x").digest()


def test_transcript_encoding_separates_types_and_boundaries():
    assert Transcript().update(b"a").digest() != Transcript().update("a").digest()
    assert Transcript().update(b"ab").digest() != Transcript().update(b"a", b"b").digest()


def test_transcript_accepts_points_scalars_and_lists():
    point = Scalar(7).act_on_base()
    first = Transcript().update(point, Scalar(7), ["a", "b"]).digest()
    second = Transcript().update(point, Scalar(7), ["a", "b"]).digest()
    third = Transcript().update(point, Scalar(8), ["a", "b"]).digest()
    assert first == second
    assert first != third


def test_transcript_rejects_unknown_types():
    with pytest.raises(TypeError):
        Transcript().update(1.5)


def test_clone_is_independent():
    base = Transcript().update("start")
    before = base.digest()
    copy = base.clone()
    copy.update("more")
    assert base.digest() == before
    assert copy.digest() != before


def test_digest_does_not_change_state():
    transcript = Transcript().update("x")
    first = transcript.digest()
    second = transcript.digest()
    assert first == second
    assert first == Transcript().update("x").digest()
    transcript.update("y")
    assert transcript.digest() == Transcript().update("x").update("y").digest()


def test_commit_and_decommit_round_trip():
    transcript = Transcript().update("context")
    commitment, decommitment = transcript.commit(b"data")
    assert transcript.decommit(commitment, decommitment, b"data")


def test_decommit_rejects_wrong_values():
    transcript = Transcript().update("context")
    commitment, decommitment = transcript.commit(b"data")
    assert not transcript.decommit(commitment, decommitment, b"other")
    assert not transcript.decommit(commitment, bytes(32), b"data")
    assert not Transcript().update("elsewhere").decommit(commitment, decommitment, b"data")
    assert not transcript.decommit(commitment[:10], decommitment, b"data")


def test_session_sorts_party_ids():
    session = Session("proto", "b", ["c", "a", "b"], 1)
    assert session.party_ids == ("a", "b", "c")
    assert session.other_party_ids() == ("a", "c")


@pytest.mark.parametrize(
    "self_id, ids, threshold",
    [
        ("z", IDS, 1),
        ("a", ["a", "a", "b"], 1),
        ("a", IDS, -1),
        ("a", IDS, 3),
        ("a", [], 0),
        ("", ["", "a"], 0),
    ],
)
def test_session_rejects_invalid_arguments(self_id, ids, threshold):
    with pytest.raises(ValueError):
        Session("proto", self_id, ids, threshold)


def test_hash_for_id_binds_the_party():
    session = Session("proto", "a", IDS, 1)
    assert session.hash_for_id("a").digest() == session.hash_for_id("a").digest()
    assert session.hash_for_id("a").digest() != session.hash_for_id("b").digest()


def test_session_context_enters_the_transcript():
    base = Session("proto", "a", IDS, 1).transcript.digest()
    assert Session("proto", "b", IDS, 1).transcript.digest() == base
    assert Session("other", "a", IDS, 1).transcript.digest() != base
    assert Session("proto", "a", IDS, 2).transcript.digest() != base
    assert Session("proto", "a", IDS, 1, b"sid").transcript.digest() != base


def test_broadcast_and_send_build_messages():
    session = Session("proto", "a", IDS, 1)
    broadcast = session.broadcast(2, "hello")
    assert broadcast == Message("a", 2, "hello")
    assert broadcast.is_broadcast
    direct = session.send(3, "share", "c")
    assert direct.to == "c"
    assert direct.sender == "a"
    assert not direct.is_broadcast


@pytest.mark.parametrize("target", ["a", "z"])
def test_send_rejects_bad_targets(target):
    session = Session("proto", "a", IDS, 1)
    with pytest.raises(ValueError):
        session.send(2, "x", target)


class _Collect:
    number = 2

    def __init__(self, session):
        self.session = session
        self.seen = {}
        self.direct = {}

    def store_broadcast(self, message):
        self.seen[message.sender] = message.content

    def store_message(self, message):
        self.direct[message.sender] = message.content

    def finalize(self):
        return Output(self.session, (dict(self.seen), dict(self.direct))), []


class _Start:
    number = 1

    def __init__(self, session, target_round=2):
        self.session = session
        self.target_round = target_round

    def store_broadcast(self, message):
        raise ProtocolError("unexpected", message.sender)

    def store_message(self, message):
        raise ProtocolError("unexpected", message.sender)

    def finalize(self):
        messages = [self.session.broadcast(self.target_round, self.session.self_id.upper())]
        messages += [
            self.session.send(self.target_round, self.session.self_id + pid, pid)
            for pid in self.session.other_party_ids()
        ]
        return _Collect(self.session), messages


def test_run_rounds_delivers_broadcasts_and_direct_messages():
    rounds = [_Start(Session("proto", pid, IDS, 1)) for pid in IDS]
    finals = run_rounds(rounds)
    assert [f.self_id for f in finals] == IDS
    for final in finals:
        seen, direct = final.result
        others = [pid for pid in IDS if pid != final.self_id]
        assert seen == {pid: pid.upper() for pid in others}
        assert direct == {pid: pid + final.self_id for pid in others}


def test_run_rounds_rejects_round_mismatch():
    rounds = [_Start(Session("proto", pid, IDS, 1), target_round=5) for pid in IDS]
    with pytest.raises(ProtocolError):
        run_rounds(rounds)


class _Failing:
    number = 1

    def __init__(self, session):
        self.session = session

    def finalize(self):
        return Abort(self.session, ProtocolError("bad"), ("b",)), []


def test_run_rounds_returns_aborts():
    finals = run_rounds([_Failing(Session("proto", pid, IDS, 1)) for pid in IDS])
    assert all(isinstance(f, Abort) for f in finals)
    assert finals[0].culprits == ("b",)
    assert str(finals[0].error) == "bad"