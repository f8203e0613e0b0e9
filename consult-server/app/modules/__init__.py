"""Billing engine modules and their public exports."""

from . import billing, pricing, sessions, topups, wallets

__all__ = [
    "billing",
    "pricing",
    "sessions",
    "topups",
    "wallets",
]
