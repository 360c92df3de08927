"""Planetary defense impact + deflection engine and its HTTP surface."""

__version__ = "2.1.0"
