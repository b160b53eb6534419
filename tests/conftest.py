"""Pytest configuration and shared fixtures for the certificate worker."""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

from pki_queue.pki_service import CAManager, CertificateIssuer
from pki_queue.worker.config import WorkerSettings


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test artifacts."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def ca_manager(temp_dir: Path) -> CAManager:
    """Initialized CA with a small key so tests stay fast."""
    manager = CAManager(
        temp_dir / "pki",
        organization="TestOrg",
        common_name="Test Client CA",
        key_size=2048,
    )
    manager.initialize_ca()
    return manager


@pytest.fixture
def issuer(ca_manager: CAManager, temp_dir: Path) -> CertificateIssuer:
    return CertificateIssuer(ca_manager, temp_dir / "pki" / "issued", validity_days=30)


@pytest.fixture
def settings(temp_dir: Path) -> WorkerSettings:
    """Settings independent of the environment and any .env file."""
    return WorkerSettings(
        _env_file=None,
        AWS_REGION="us-east-1",
        PKI_STORAGE_PATH=temp_dir / "pki",
        CA_KEY_SIZE=2048,
    )
