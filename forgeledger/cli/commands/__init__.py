"""Individual CLI commands, registered in ``forgeledger.cli.app``."""
