"""Core configuration and logging for the chat relay."""
