"""FastAPI service for managing users and their orders.

This package provides REST API endpoints that validate user and order
payloads and persist them as documents in MongoDB.
"""

__version__ = "1.0.0"
