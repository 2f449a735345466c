"""
Property listings service.

This package provides a FastAPI application over a storage facade that
routes each call to MongoDB when it is reachable and to an in-memory
store otherwise.
"""
