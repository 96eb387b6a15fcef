"""Shared pytest fixtures for certmagic tests.

All tests are unit tests: AWS services are replaced by in-process mocks and
artifacts are written to per-test temporary directories.
"""

import os
from pathlib import Path
from typing import Generator

import pytest

from certmagic.config import CertMagicConfig
from certmagic.console import RecordingOutput
from certmagic.lifecycle import CertificateLifecycle
from certmagic.storage import LocalArtifactStore
from tests.mocks import MockAwsClients, MockCA


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Long-running tests")


@pytest.fixture
def temp_keys_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Provide an isolated directory for CSRs and encrypted keys.

    Yields:
        Path to a temporary keys directory
    """
    keys_dir = tmp_path / "keys"
    keys_dir.mkdir()
    yield keys_dir


@pytest.fixture
def artifact_store(temp_keys_dir: Path) -> LocalArtifactStore:
    return LocalArtifactStore(temp_keys_dir)


@pytest.fixture
def aws_clients() -> MockAwsClients:
    return MockAwsClients()


@pytest.fixture
def recording_output() -> RecordingOutput:
    return RecordingOutput()


@pytest.fixture(scope="session")
def test_ca() -> MockCA:
    """A CA shared across the session (RSA key generation is slow)."""
    return MockCA()


@pytest.fixture
def answers() -> list:
    """Answers given to confirmation prompts, consumed in order."""
    return []


@pytest.fixture
def lifecycle(temp_keys_dir, artifact_store, aws_clients, recording_output, answers) -> CertificateLifecycle:
    """A CertificateLifecycle wired to mocks.

    Issuer downloads fail the test; pass a chain file or replace
    fetch_issuer where the chain walk is exercised.
    """
    prompts = []

    def confirm(prompt):
        prompts.append(prompt)
        return answers.pop(0) if answers else None

    def no_fetch(url):
        pytest.fail(f"unexpected issuer download: {url}")

    lc = CertificateLifecycle(
        config=CertMagicConfig(keys_dir=temp_keys_dir),
        store=artifact_store,
        clients=aws_clients,
        output=recording_output,
        confirm=confirm,
        fetch_issuer=no_fetch,
    )
    lc.prompts = prompts
    return lc


@pytest.fixture
def clean_env(monkeypatch):
    """Provide a clean environment without certmagic or AWS region vars.

    Removes environment variables that might interfere with config tests.
    """
    env_vars = [
        "CERTMAGIC_CONFIG",
        "CERTMAGIC_KEYS_DIR",
        "CERTMAGIC_KEY_ALIAS",
        "AWS_DEFAULT_REGION",
        "AWS_PROFILE",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_config_file(tmp_path: Path) -> dict:
    """Create a certmagic YAML config file.

    Returns:
        Dictionary with the config path and data
    """
    import yaml

    config_data = {
        "keys_dir": str(tmp_path / "configured-keys"),
        "region": "us-east-1",
        "key_alias": "alias/tls-keys",
        "key_size": 3072,
    }

    config_file = tmp_path / "certmagic.yaml"
    with open(config_file, "w") as f:
        yaml.dump(config_data, f)

    return {
        "config_path": str(config_file),
        "config_data": config_data,
    }


# Autouse fixture for test isolation
@pytest.fixture(autouse=True)
def isolate_test_artifacts(tmp_path: Path, monkeypatch) -> Generator[None, None, None]:
    """Ensure tests don't affect the real system.

    Redirects XDG data home and the AWS config files to temp locations.
    """
    test_data_home = tmp_path / "data"
    test_data_home.mkdir()
    monkeypatch.setenv("XDG_DATA_HOME", str(test_data_home))

    # On Windows, also set LOCALAPPDATA
    if os.name == "nt":
        monkeypatch.setenv("LOCALAPPDATA", str(test_data_home))

    aws_config = tmp_path / "aws-config"
    aws_config.write_text("[profile deploy]\nregion = eu-west-1\n")
    monkeypatch.setenv("AWS_CONFIG_FILE", str(aws_config))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "aws-credentials"))

    yield
