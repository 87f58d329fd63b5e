"""HTTP surface -- FastAPI app factory and JSON routes."""
