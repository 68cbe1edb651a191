"""Verification of GitHub Actions OIDC tokens."""
