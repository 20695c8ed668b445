"""
Sale Audit Test Suite.

- unit/: parsing, report generation, email delivery, ledger and summary tests
- integration/: API endpoint tests through FastAPI's TestClient
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
"""
