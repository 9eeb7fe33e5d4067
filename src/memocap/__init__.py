"""memocap - screenshot and clipboard notes persisted as JSON records."""

__version__ = "0.1.0"
