"""Command-line interface for forgeledger."""
