"""Shared service utilities: Neo4j client, FastAPI factory, error handling."""
