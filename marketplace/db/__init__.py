"""Persistence: SQLAlchemy models and the DataStore implementation."""
