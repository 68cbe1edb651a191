"""Error kinds raised while acquiring key sets and validating tokens."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Stable tag for each failure, suitable for logs and API bodies."""

    FETCH = "fetch_error"
    PARSE = "parse_error"
    MALFORMED_TOKEN = "malformed_token"
    HEADER_DECODE = "header_decode"
    KEY_NOT_FOUND = "key_not_found"
    KEY_CONSTRUCTION = "key_construction"
    ALGORITHM_MISMATCH = "algorithm_mismatch"
    AUDIENCE_MISMATCH = "audience_mismatch"
    EXPIRED_OR_NOT_YET_VALID = "expired_or_not_yet_valid"
    SIGNATURE_VERIFICATION = "signature_verification"
    ISSUER_MISMATCH = "issuer_mismatch"
    CLAIMS_DECODE = "claims_decode"
    ORGANIZATION_MISMATCH = "organization_mismatch"
    REPOSITORY_MISMATCH = "repository_mismatch"


class OIDCError(Exception):
    """Base class for every error this package raises."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class KeySetError(OIDCError):
    """The JWKS could not be obtained."""


class FetchError(KeySetError):
    """Network failure, timeout or non-2xx response from the JWKS endpoint."""

    kind = ErrorKind.FETCH


class ParseError(KeySetError):
    """The JWKS body is not JSON or does not match the expected shape."""

    kind = ErrorKind.PARSE


class TokenValidationError(OIDCError):
    """A presented token was rejected."""


class MalformedTokenError(TokenValidationError):
    kind = ErrorKind.MALFORMED_TOKEN


class HeaderDecodeError(TokenValidationError):
    kind = ErrorKind.HEADER_DECODE


class KeyNotFoundError(TokenValidationError):
    """No key in the current snapshot matches the token's ``kid``.

    Expected while the issuer rotates keys; callers refresh the key set and
    retry once.
    """

    kind = ErrorKind.KEY_NOT_FOUND


class KeyConstructionError(TokenValidationError):
    kind = ErrorKind.KEY_CONSTRUCTION


class AlgorithmMismatchError(TokenValidationError):
    kind = ErrorKind.ALGORITHM_MISMATCH


class AudienceMismatchError(TokenValidationError):
    kind = ErrorKind.AUDIENCE_MISMATCH


class ExpiredOrNotYetValidError(TokenValidationError):
    kind = ErrorKind.EXPIRED_OR_NOT_YET_VALID


class SignatureVerificationError(TokenValidationError):
    kind = ErrorKind.SIGNATURE_VERIFICATION


class IssuerMismatchError(TokenValidationError):
    kind = ErrorKind.ISSUER_MISMATCH


class ClaimsDecodeError(TokenValidationError):
    kind = ErrorKind.CLAIMS_DECODE


class OrganizationMismatchError(TokenValidationError):
    kind = ErrorKind.ORGANIZATION_MISMATCH


class RepositoryMismatchError(TokenValidationError):
    kind = ErrorKind.REPOSITORY_MISMATCH
