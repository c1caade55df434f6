"""Toilet Spotter: find, share and vote on shared-access toilet codes nearby."""

__version__ = "0.1.0"
