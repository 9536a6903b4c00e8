"""SinalVerde -- HTTP front-end for a single WhatsApp Web session."""

__version__ = "0.1.0"
