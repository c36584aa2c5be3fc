"""
DoseTrack Test Suite
====================

This package contains all tests for the DoseTrack dose scheduling and adherence system.

Test Structure:
- test_tools/: Schedule expansion, timing, PRN, collision and inventory rules
- test_actions/: Adherence analytics, missed-dose alerts and refill reminders
- test_services/: Stores and the dose action / daily view / adherence services
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures (fixed clock, in-memory SQLite)

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""

# Test configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

__all__ = [
    "TEST_DATABASE_URL",
]
