"""
bevyhatch test suite
====================

This package contains the tests for bevyhatch.

Test Modules
------------
- test_models.py: Tests for option models and selections
- test_entries.py: Tests for entry classification and the template store
- test_renderer.py: Tests for Jinja2 rendering of entries
- test_loaders.py: Tests for embedded, archive and repository loaders
- test_generator.py: Tests for project materialization
- test_installer.py: Tests for template installation
- test_cli.py: Tests for the command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip tests that need git
    pytest -m "not integration"

    # Run specific module
    pytest tests/test_generator.py
"""
