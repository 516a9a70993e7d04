"""
Fixit Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    ├── factories.py         # Row factories and in-memory repositories
    ├── unit/                # Unit tests (no database)
    │   ├── test_scheduler.py        # Level/interval transitions
    │   ├── test_session_service.py  # Practice session state machine
    │   └── test_statistics.py       # Streaks, heatmap, calendar
    └── integration/         # Integration tests (SQLite file per test)
        ├── test_repositories.py     # Query layer
        ├── test_reviews_api.py      # Reviews and sessions over HTTP
        └── test_questions_api.py    # Question bank over HTTP

Running Tests:
    # Run all tests
    pytest backend/tests/ -v

    # Run only unit tests
    pytest backend/tests/unit/ -v

    # Run only integration tests
    pytest -m integration -v
"""
