"""FastAPI service for users stored in MongoDB.

This package provides REST API endpoints to create, read, replace,
patch, delete and search users.
"""

__version__ = "1.0.0"
