"""
Asset hierarchy test suite.

This package contains:
- unit/: Unit tests for the model, attribute editing, workbook adapter and CLI
- integration/: HTTP editor tests through FastAPI's TestClient
"""
