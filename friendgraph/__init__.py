"""Friendship relationship engine: requests, friend sets and friends-of-friends."""

__version__ = "0.1.0"
