"""
Unit Tests

Unit tests run in isolation without a database. Services are wired to the
in-memory repositories from tests/factories.py and a mocked session.
"""
