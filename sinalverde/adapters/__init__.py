"""SinalVerde adapters -- wrappers around third-party messaging clients.

- **whatsapp**: credential directory, typed connection events, and the
  multi-device session client used by the connection supervisor.
"""
