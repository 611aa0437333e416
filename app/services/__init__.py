"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- validation.py: Review payload rules
- timestamps.py: Store timestamp <-> wire format conversion
- reviews.py: Review CRUD and queries over the document store
- bootstrap.py: Idempotent collection initialization at startup
- restaurants.py: Static restaurant listings
- security.py: Identity provider token verification
- rate_limiter.py: Rate limiting with slowapi
"""
