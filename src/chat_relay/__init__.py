"""Real-time channel-based chat relay."""

__version__ = "0.1.0"
