"""Settings, errors, and application factory."""
