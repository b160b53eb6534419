"""Unit tests for CA Manager component."""

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from pki_queue.pki_service import CAManager

from ..utils.test_helpers import common_name, load_crl


class TestCAInitialization:
    """Test CA creation and loading."""

    def test_initialize_creates_key_cert_and_crl(self, ca_manager):
        assert ca_manager.ca_key_path.exists()
        assert ca_manager.ca_cert_path.exists()
        assert ca_manager.crl_path.exists()

    def test_ca_key_permissions_restricted(self, ca_manager):
        assert ca_manager.ca_key_path.stat().st_mode & 0o777 == 0o600

    def test_ca_certificate_properties(self, ca_manager):
        private_key, cert = ca_manager.get_ca()

        assert isinstance(private_key, rsa.RSAPrivateKey)
        assert cert.issuer == cert.subject
        assert common_name(cert) == "Test Client CA"

        basic_constraints = cert.extensions.get_extension_for_oid(
            x509.oid.ExtensionOID.BASIC_CONSTRAINTS
        )
        assert basic_constraints.value.ca is True
        assert basic_constraints.critical is True

        key_usage = cert.extensions.get_extension_for_oid(x509.oid.ExtensionOID.KEY_USAGE)
        assert key_usage.value.key_cert_sign is True
        assert key_usage.value.crl_sign is True

    def test_initialize_loads_existing_ca(self, ca_manager, temp_dir):
        _, original = ca_manager.get_ca()

        reloaded = CAManager(temp_dir / "pki", key_size=2048)
        _, cert = reloaded.initialize_ca()

        assert cert.serial_number == original.serial_number

    def test_force_replaces_ca(self, ca_manager):
        _, original = ca_manager.get_ca()
        _, replaced = ca_manager.initialize_ca(force=True)

        assert replaced.serial_number != original.serial_number

    def test_get_ca_before_initialize_raises(self, temp_dir):
        manager = CAManager(temp_dir / "empty", key_size=2048)

        with pytest.raises(FileNotFoundError):
            manager.get_ca()

    def test_ca_info(self, ca_manager):
        info = ca_manager.get_ca_info()

        assert "Test Client CA" in info["subject"]
        assert len(info["fingerprint_sha256"]) == 64


class TestCRL:
    """Test certificate revocation list generation."""

    def test_initial_crl_is_empty_and_signed(self, ca_manager):
        _, ca_cert = ca_manager.get_ca()
        crl = load_crl(ca_manager.crl_path)

        assert len(list(crl)) == 0
        assert crl.issuer == ca_cert.subject
        assert crl.is_signature_valid(ca_cert.public_key())

    def test_write_crl_lists_revoked_serials(self, ca_manager, mock_revocation_time):
        ca_manager.write_crl([(1234, mock_revocation_time), (5678, mock_revocation_time)])
        crl = load_crl(ca_manager.crl_path)

        assert crl.get_revoked_certificate_by_serial_number(1234) is not None
        assert crl.get_revoked_certificate_by_serial_number(5678) is not None
        assert crl.get_revoked_certificate_by_serial_number(9999) is None


@pytest.fixture
def mock_revocation_time():
    from datetime import datetime, timezone
    return datetime(2025, 1, 1, tzinfo=timezone.utc)
