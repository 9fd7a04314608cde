"""DevHub social graph and counter service."""

__version__ = "0.1.0"
