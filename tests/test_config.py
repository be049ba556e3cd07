import secrets

import pytest

from frostsig.config import Config, TaprootConfig, derive_scalar
from frostsig.curve import Scalar, lift_x
from frostsig.polynomial import Polynomial, id_scalar, lagrange

IDS = ["a", "b", "c", "d", "e"]
THRESHOLD = 2


def _reconstruct(shares):
    coefficients = lagrange(shares)
    total = Scalar(0)
    for pid, share in shares.items():
        total = total + coefficients[pid] * share
    return total


def _configs():
    secret = Scalar.random()
    poly = Polynomial.random(THRESHOLD, secret)
    public_key = secret.act_on_base()
    chain_key = secrets.token_bytes(32)
    shares = {pid: poly.evaluate(id_scalar(pid)) for pid in IDS}
    verification = {pid: s.act_on_base() for pid, s in shares.items()}
    return [
        Config(pid, THRESHOLD, shares[pid], public_key, dict(verification), chain_key)
        for pid in IDS
    ]


def _taproot_configs():
    secret = Scalar.random()
    point = secret.act_on_base()
    if not point.has_even_y():
        secret = -secret
    poly = Polynomial.random(THRESHOLD, secret)
    shares = {pid: poly.evaluate(id_scalar(pid)) for pid in IDS}
    verification = {pid: s.act_on_base() for pid, s in shares.items()}
    return [
        TaprootConfig(pid, THRESHOLD, shares[pid], point.x_bytes(), dict(verification))
        for pid in IDS
    ]


def test_derive_child_keeps_sharing_consistent():
    derived = [c.derive_child(1) for c in _configs()]
    public_key = derived[0].public_key
    assert all(d.public_key == public_key for d in derived)
    assert len({d.chain_key for d in derived}) == 1
    secret = _reconstruct({d.id: d.private_share for d in derived})
    assert secret.act_on_base() == public_key
    for d in derived:
        for other in derived:
            assert d.verification_shares[other.id] == other.private_share.act_on_base()


def test_derive_child_is_deterministic_per_index():
    config = _configs()[0]
    assert config.derive_child(1) == config.derive_child(1)
    assert config.derive_child(1).public_key != config.derive_child(2).public_key


def test_derive_requires_chain_key():
    config = _configs()[0]
    with pytest.raises(ValueError):
        config.derive(Scalar(1), b"short")
    no_chain = Config(config.id, config.threshold, config.private_share, config.public_key)
    with pytest.raises(ValueError):
        no_chain.derive(Scalar(1))


def test_derive_adds_scalar():
    config = _configs()[0]
    adjust = Scalar.random()
    derived = config.derive(adjust)
    assert derived.private_share == config.private_share + adjust
    assert derived.public_key == config.public_key + adjust.act_on_base()
    assert derived.chain_key == config.chain_key


def test_derive_scalar_rejects_hardened_index():
    public_key = Scalar.random().act_on_base()
    with pytest.raises(ValueError):
        derive_scalar(public_key, bytes(32), 1 << 31)


def test_derive_scalar_outputs():
    public_key = Scalar.random().act_on_base()
    tweak, chain_key = derive_scalar(public_key, b"", 1)
    assert len(chain_key) == 32
    assert derive_scalar(public_key, b"", 1) == (tweak, chain_key)


def test_config_dict_round_trip():
    config = _configs()[2].derive_child(5)
    restored = Config.from_dict(config.to_dict())
    assert restored == config
    for pid in IDS:
        assert restored.verification_shares[pid] == config.verification_shares[pid]


def test_taproot_derive_child_keeps_sharing_consistent():
    derived = [c.derive_child(1) for c in _taproot_configs()]
    public_key = derived[0].public_key
    assert all(d.public_key == public_key for d in derived)
    assert len(public_key) == 32
    secret = _reconstruct({d.id: d.private_share for d in derived})
    assert secret.act_on_base() == lift_x(public_key)
    for d in derived:
        for other in derived:
            assert d.verification_shares[other.id] == other.private_share.act_on_base()


def test_taproot_derive_requires_chain_key():
    config = _taproot_configs()[0]
    with pytest.raises(ValueError):
        config.derive(Scalar(1))


def test_taproot_clone_is_independent():
    config = _taproot_configs()[0]
    copy = config.clone()
    assert copy == config
    copy.verification_shares["z"] = Scalar(1).act_on_base()
    assert "z" not in config.verification_shares