"""FastAPI backend for the notemod back-office."""
