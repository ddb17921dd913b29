"""Blueprint Edit backend - FastAPI app, session state and the CLI."""
