"""
I/O models for API requests and responses.

These Pydantic schemas define the contract between the HTTP API and its
clients; they are separate from the SQLModel table entities.
"""
