"""FastAPI dependencies and routes."""
