"""FROST threshold Schnorr signatures over secp256k1, with BIP-340 support."""

__version__ = "0.1.0"

__all__ = ["config", "curve", "frost", "keygen", "polynomial", "session", "sign", "signature"]