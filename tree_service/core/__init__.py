"""Core domain layer: database models, tree queries and settings."""
