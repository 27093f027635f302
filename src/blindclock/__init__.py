"""blindclock: an authoritative tournament blind clock."""

__version__ = "0.1.0"
