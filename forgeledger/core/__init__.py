"""Ledger core: storage, state machine, sequencing and ownership checks."""
