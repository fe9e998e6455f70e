"""Inventory transaction ledger: check-in, check-out, transfer, approval and delivery."""

__version__ = "1.0.0"
