# frostsig

Threshold Schnorr signatures using the FROST protocol over secp256k1. It is
written in pure Python and has no third-party dependencies.

A group of `n` participants runs a distributed key generation. Afterwards each
participant holds a share of a secret key, and all of them agree on one public
key. Later, any `threshold + 1` of them can work together to produce a Schnorr
signature that verifies against that public key. There is no trusted dealer
and no central signing authority: every participant checks the contributions
of the others itself.

## Features

- Distributed key generation with Schnorr proofs of knowledge, verifiable
  secret sharing, and a jointly chosen 32-byte chain key committed to in
  advance.
- Share refresh: new shares for the same public key.
- Signing with hedged nonces, derived from the secret share, the session, the
  message hash and fresh randomness.
- BIP-340 / Taproot compatible keys and signatures: `keygen_taproot`,
  `refresh_taproot`, `sign_taproot` and `frostsig.signature.taproot_verify`.
- BIP-32 style non-hardened child key derivation on a finished configuration:
  `Config.derive_child` and `TaprootConfig.derive_child`, or an arbitrary
  additive tweak with `derive`.

## Modules

- `frostsig.frost`: the entry points `keygen`, `keygen_taproot`, `refresh`,
  `refresh_taproot`, `sign` and `sign_taproot`. Each one returns a start
  function. Call it, optionally with a `session_id` as bytes, to get the
  party's first round.
- `frostsig.keygen` and `frostsig.sign`: the lower-level `start_keygen` and
  `start_sign`.
- `frostsig.session`: `Session`, `Transcript`, `Message`, `Output`, `Abort`,
  `ProtocolError` and the in-process driver `run_rounds`.
- `frostsig.config`: `Config`, `TaprootConfig` and `derive_scalar`.
- `frostsig.signature`: `Signature` (with `verify`, `to_bytes` and
  `from_bytes`), `taproot_verify` and `tagged_hash`.
- `frostsig.curve`: secp256k1 `Scalar` and `Point` arithmetic, `lift_x` and
  `hash_to_scalar`.
- `frostsig.polynomial`: `Polynomial`, `Exponent`, `id_scalar` and `lagrange`.

## Installation

```
pip install frostsig
```

## Usage

Each round has a `finalize()` method. It returns the next round together with
the messages to deliver to the other parties. `run_rounds` drives all parties
in one process until each one reaches an `Output` or an `Abort`, and returns
those final states in the order the parties were given:

```python
from frostsig.frost import keygen, sign
from frostsig.session import run_rounds

ids = ["a", "b", "c"]
threshold = 1  # threshold + 1 = 2 signers are needed

finished = run_rounds([keygen(i, ids, threshold)() for i in ids])
configs = [state.result for state in finished]
public_key = configs[0].public_key

message_hash = bytes(32)
signers = configs[:2]
finished = run_rounds(
    [sign(c, [s.id for s in signers], message_hash)() for c in signers]
)
signature = finished[0].result
assert signature.verify(public_key, message_hash)
```

For Taproot, use `keygen_taproot` and `sign_taproot`. Key generation then
yields `TaprootConfig` objects, whose `public_key` is a 32-byte x-only key.
Signing yields a 64-byte BIP-340 signature that
`frostsig.signature.taproot_verify(public_key, signature, message_hash)`
accepts.

`refresh(config, participants)` and `refresh_taproot(config, participants)`
run the key generation again with a zero secret contribution. The result is
new shares for an unchanged public key.

A `Config` can be turned into a JSON-friendly dictionary with
`Config.to_dict` and loaded back with `Config.from_dict`.

## Errors

- Bad arguments raise `ValueError`. Examples: an empty or duplicate party ID,
  a `self_id` that is not among the participants, a threshold that is not
  smaller than the number of parties, missing verification shares, or a chain
  key of the wrong length.
- During a run, a party that sends malformed or inconsistent data raises
  `frostsig.session.ProtocolError`. Examples are a bad proof, a failed share
  check, a wrong commitment opening, an invalid response, or a duplicate,
  unexpected or missing message. Its `culprit` attribute names the party at
  fault when one is known.
- If a produced signature fails its final check, signing ends in an `Abort`
  rather than an `Output`.

## What this package does not do

Messages are plain Python objects, and `run_rounds` delivers them between
parties in the same process. The package has no network transport, no wire
format for protocol messages, no persistent storage beyond
`Config.to_dict`/`from_dict`, and no command-line tool. To run parties on
separate machines, you must serialise and deliver each `Message` to the right
party's current round yourself.

## Running the tests

```
pip install -e .[test]
pytest
```