"""Version information for the DEX grid bot."""

__version__ = "0.1.0"
