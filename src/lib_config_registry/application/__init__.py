"""Application layer: ports and pure derivation policy."""
