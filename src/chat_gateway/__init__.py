"""Chat gateway: relays chat messages to a hosted LLM and streams the reply back."""

__version__ = "0.1.0"
