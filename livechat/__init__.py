"""Models, connection registry and request handlers for a web live chat."""

__version__ = "0.3.9"