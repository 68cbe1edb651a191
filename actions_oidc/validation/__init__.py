"""GitHub Actions token validation."""
