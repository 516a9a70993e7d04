"""
Integration Tests

Integration tests run the repositories, services and routers against a
temporary SQLite database through aiosqlite. No external services are
needed.
"""
