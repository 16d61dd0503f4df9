"""
Tests for the funds app.

This package contains test modules for:
- test_models.py: FundAccount / FundMovement model tests
- test_services.py: AccountLedger and MovementRecorder tests
- test_integration.py: Multi-step scenarios and invariant checks
- test_concurrency.py: Row-locking tests against PostgreSQL
- test_views.py: API endpoint tests

Usage:
    pytest app/funds/tests/
    pytest app/funds/tests/test_services.py
"""
