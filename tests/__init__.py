"""
ROLEZK Test Suite
=================

Test organization:
- tests/unit/                   - Engine unit tests (no external services)
- tests/services/verification/  - HTTP API tests against the ASGI app

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=rolezk             # With coverage
"""
