"""Commit histories for Renovate digest updates."""

__version__ = "0.1.0"
