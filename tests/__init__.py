"""Tests for certmagic.

Test Structure:
    tests/
    ├── conftest.py          # Shared pytest fixtures
    ├── unit/                # Unit tests (no external deps)
    │   ├── test_artifact_store.py
    │   ├── test_cli.py
    │   ├── test_config.py
    │   ├── test_credentials.py
    │   ├── test_envelope.py
    │   ├── test_error_handling.py
    │   ├── test_lifecycle.py
    │   └── test_pki.py
    └── mocks/               # Mock implementations
        ├── mock_aws.py      # KMS and IAM clients
        └── mock_ca.py       # Test certificate authority

Usage:
    # Run all tests
    pytest

    # Run only unit tests
    pytest -m unit

    # Run with verbose output
    pytest -v
"""
