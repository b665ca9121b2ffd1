"""HTTP API for the feature voting service."""
