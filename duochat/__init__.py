"""DuoChat - one-to-one terminal chat over a single TCP connection."""

__version__ = "1.0.0"
