"""Peer-to-peer energy marketplace API."""

__version__ = "0.1.0"
