"""Conversion of published JWK entries into RSA verification keys."""

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey
from jwt.algorithms import RSAAlgorithm

from actions_oidc.core.errors import KeyConstructionError
from actions_oidc.crypto.types import SigningKey


def public_key_from_signing_key(key: SigningKey) -> RSAPublicKey:
    """Build an RSA verification key from a JWK's modulus and exponent.

    Raises:
        KeyConstructionError: the key is not RSA, or ``n``/``e`` do not form a
            valid RSA public key.
    """
    jwk = key.model_dump(mode="json", by_alias=True, exclude_none=True)
    try:
        public_key = RSAAlgorithm.from_jwk(jwk)
    except (jwt.InvalidKeyError, ValueError) as exc:
        raise KeyConstructionError(
            f"Failed to create decoding key for {key.kid!r}: {exc}"
        ) from exc
    if not isinstance(public_key, RSAPublicKey):
        raise KeyConstructionError(f"Key {key.kid!r} is not an RSA public key")
    return public_key
