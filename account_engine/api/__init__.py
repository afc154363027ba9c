"""HTTP delivery layer - FastAPI application, routes and dependencies."""
