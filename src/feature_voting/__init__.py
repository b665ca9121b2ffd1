"""Feature voting service: propose features and vote on them."""

__version__ = "0.1.0"
