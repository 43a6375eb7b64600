"""Peer Rounds: scheduling, peer assessment and compensation for recurring rounds."""

__version__ = "1.0.0"
