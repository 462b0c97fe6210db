"""Application configuration, logging and request context."""
