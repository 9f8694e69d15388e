"""ClientPulse: client engagement tracking and agent reassignment engine."""

__version__ = "1.0.0"
