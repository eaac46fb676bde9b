"""tiercascade: tiered AI backend routing with escalation."""

__version__ = "0.1.0"
