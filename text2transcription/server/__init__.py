"""HTTP API: FastAPI app, in-memory job store and Pydantic models."""
