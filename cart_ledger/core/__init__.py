"""Configuration, errors and the shared ledger factory."""
