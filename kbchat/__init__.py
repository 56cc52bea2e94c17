"""Session and conversation client for the knowledge-base chat console."""

__version__ = "0.1.0"
