"""RMG Portal backend: resource management over FastAPI and async SQLAlchemy."""
