import pytest

from frostsig.config import Config, TaprootConfig
from frostsig.curve import Scalar, lift_x
from frostsig.frost import (
    keygen,
    keygen_taproot,
    refresh,
    refresh_taproot,
    sign,
    sign_taproot,
)
from frostsig.polynomial import lagrange
from frostsig.session import Output, run_rounds
from frostsig.signature import Signature, taproot_verify

PARTY_IDS = ["a", "b", "c", "d", "e"]
THRESHOLD = len(PARTY_IDS) - 1
MESSAGE = b"hello"


def _run(starts):
    final = run_rounds([start(None) for start in starts])
    assert all(isinstance(state, Output) for state in final)
    return {state.self_id: state.result for state in final}


@pytest.fixture(scope="module")
def configs():
    return _run([keygen(pid, PARTY_IDS, THRESHOLD) for pid in PARTY_IDS])


@pytest.fixture(scope="module")
def refreshed(configs):
    return _run([refresh(configs[pid], PARTY_IDS) for pid in PARTY_IDS])


@pytest.fixture(scope="module")
def taproot_configs():
    return _run([keygen_taproot(pid, PARTY_IDS, THRESHOLD) for pid in PARTY_IDS])


@pytest.fixture(scope="module")
def taproot_refreshed(taproot_configs):
    return _run([refresh_taproot(taproot_configs[pid], PARTY_IDS) for pid in PARTY_IDS])


def test_keygen_results_agree(configs):
    results = list(configs.values())
    assert all(isinstance(r, Config) for r in results)
    assert len({r.public_key for r in results}) == 1
    assert len({r.chain_key for r in results}) == 1
    coefficients = lagrange(PARTY_IDS)
    secret = sum((coefficients[r.id] * r.private_share for r in results), Scalar(0))
    assert secret.act_on_base() == results[0].public_key
    for r in results:
        for pid in PARTY_IDS:
            assert r.verification_shares[pid] == configs[pid].private_share.act_on_base()


def test_refresh_keeps_public_key(configs, refreshed):
    for pid in PARTY_IDS:
        assert refreshed[pid].public_key == configs[pid].public_key
        assert refreshed[pid].private_share != configs[pid].private_share
        assert refreshed[pid].verification_shares[pid] == refreshed[pid].private_share.act_on_base()


def test_refresh_taproot_keeps_public_key(taproot_configs, taproot_refreshed):
    for pid in PARTY_IDS:
        assert isinstance(taproot_refreshed[pid], TaprootConfig)
        assert taproot_refreshed[pid].public_key == taproot_configs[pid].public_key
    coefficients = lagrange(PARTY_IDS)
    secret = sum(
        (coefficients[pid] * taproot_refreshed[pid].private_share for pid in PARTY_IDS), Scalar(0)
    )
    assert secret.act_on_base() == lift_x(taproot_refreshed["a"].public_key)


def test_sign_after_refresh(refreshed):
    results = _run([sign(refreshed[pid], PARTY_IDS, MESSAGE) for pid in PARTY_IDS])
    public_key = refreshed["a"].public_key
    for signature in results.values():
        assert isinstance(signature, Signature)
        assert signature.verify(public_key, MESSAGE)


def test_sign_taproot_after_refresh(taproot_refreshed):
    results = _run([sign_taproot(taproot_refreshed[pid], PARTY_IDS, MESSAGE) for pid in PARTY_IDS])
    public_key = taproot_refreshed["a"].public_key
    for signature in results.values():
        assert taproot_verify(public_key, signature, MESSAGE)
        assert not taproot_verify(public_key, signature, b"bye")


def test_small_group_subset_signs():
    ids = ["x", "y", "z"]
    small = _run([keygen(pid, ids, 1) for pid in ids])
    signers = ["x", "z"]
    results = _run([sign(small[pid], signers, MESSAGE) for pid in signers])
    assert all(sig.verify(small["y"].public_key, MESSAGE) for sig in results.values())


def test_refresh_taproot_invalid_key_fails_on_start():
    config = TaprootConfig(
        id="a",
        threshold=1,
        private_share=Scalar(1),
        public_key=b"\xff" * 32,
        verification_shares={},
    )
    start = refresh_taproot(config, ["a", "b"])
    with pytest.raises(ValueError):
        start(None)
    start_sign_func = sign_taproot(config, ["a", "b"], MESSAGE)
    with pytest.raises(ValueError):
        start_sign_func(None)