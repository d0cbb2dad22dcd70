"""FastAPI routers for the storefront API."""
