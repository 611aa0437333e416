"""
Test Suite for KoboWave API

Test Organization:
- conftest.py: Shared fixtures (in-memory document store, client, sample payloads)
- test_validation.py: Review payload rules
- test_timestamps.py: Timestamp wire conversion
- test_store.py: Document store client
- test_review_store.py: Review CRUD and queries
- test_bootstrap.py: Collection bootstrapping
- test_lifespan.py: Startup schema creation, background bootstrap, shutdown
- test_reviews.py: Tests for /api/reviews endpoints
- test_restaurants.py: Tests for /api/restaurants, /api/health and /
- test_timeout.py: Request timeout middleware
- test_rate_limiter.py: Client identification and 429 responses

Running Tests:
    # Install with test dependencies
    pip install -e ".[test]"

    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_reviews.py

    # Run with verbose output
    pytest -v
"""
