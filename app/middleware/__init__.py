"""
HTTP Middleware Package

- timeout.py: Bound how long a request may wait on the document store
"""

from app.middleware.timeout import TimeoutMiddleware

__all__ = [
    "TimeoutMiddleware",
]
