"""JWKS fetching, snapshot store, and background refresh."""
