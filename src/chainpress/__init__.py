"""Wallet sign-in and content integrity service."""

__version__ = "0.1.0"
