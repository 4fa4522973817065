"""Version information for neo-access."""

__version__ = "0.1.0"
