"""SinalVerde HTTP surface -- FastAPI routers, middleware and dependencies."""
