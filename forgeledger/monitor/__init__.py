"""Terminal rendering for builds and ledger statistics."""

from forgeledger.monitor.renderer import BuildRenderer

__all__ = ["BuildRenderer"]
