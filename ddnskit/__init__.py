"""Building blocks for a dynamic DNS updater: request signers, network and update helpers."""

__version__ = "6.0.0"