"""Request-rate accounting service with a fast in-process tier and a Redis tier."""

__version__ = "0.1.0"
