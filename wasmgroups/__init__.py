"""In-memory weighted membership groups, token staking with claims, and multisig executor rules."""

__version__ = "0.1.0"