"""Configuration: settings models, settings loading and logging setup."""
