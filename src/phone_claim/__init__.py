"""Phone-verified claim authorization service."""

__version__ = "0.1.0"
