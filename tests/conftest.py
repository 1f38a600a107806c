"""
Pytest configuration and fixtures for test isolation.
"""
import os
import shutil

import pytest


@pytest.fixture(autouse=True)
def isolate_tests(tmp_path, monkeypatch):
    """
    Automatically isolate each test by:
    1. Using a temporary directory for outputs
    2. Pointing the archive directory at it
    """
    test_output = tmp_path / "test_output"
    test_output.mkdir(exist_ok=True)
    
    monkeypatch.setenv("TEST_OUTPUT_DIR", str(test_output))
    monkeypatch.setenv("INGEST_OUTPUT_DIR", str(test_output / "archive"))
    
    yield
    
    if test_output.exists():
        shutil.rmtree(test_output, ignore_errors=True)


@pytest.fixture(autouse=True, scope="function")
def reset_environment():
    """Reset environment variables between tests."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
