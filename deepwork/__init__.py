"""Deep-work scheduling and planning engine."""

__version__ = "0.1.0"
