"""RSA key material and JWKS/claims types."""
