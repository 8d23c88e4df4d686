"""Record store account backend: registration, sessions and password recovery."""

__version__ = "1.0.0"
