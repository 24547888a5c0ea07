"""Core building blocks: database layer, domain models, logging and monitoring."""
