"""HTTP routers: health, session lifecycle and messaging."""
