"""Certificate Authority management module."""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Tuple
import logging

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa

from ..crypto_utils import X509Utils, CertificateVerifier

logger = logging.getLogger(__name__)


class CAManager:
    """Manages the client CA key pair and its revocation list on disk."""

    def __init__(
        self,
        storage_path: Path,
        organization: str = "OpenVPN",
        common_name: str = "OpenVPN Client CA",
        country: str = "US",
        key_size: int = 4096
    ):
        """
        Initialize CA Manager.

        Args:
            storage_path: Base path for CA material
            organization: Organization name used for new CA and client certificates
            common_name: Common name of the CA certificate
            country: Two-letter country code
            key_size: RSA key size for a newly created CA
        """
        self.storage_path = Path(storage_path)
        self.ca_path = self.storage_path / "ca"
        self.ca_key_path = self.ca_path / "ca.key"
        self.ca_cert_path = self.ca_path / "ca.crt"
        self.crl_path = self.ca_path / "crl.pem"

        self.organization = organization
        self.common_name = common_name
        self.country = country
        self.key_size = key_size

        self.ca_path.mkdir(parents=True, exist_ok=True)

        self._private_key: Optional[rsa.RSAPrivateKey] = None
        self._cert: Optional[x509.Certificate] = None

        logger.info(f"CA Manager initialized with storage path: {storage_path}")

    def initialize_ca(self, force: bool = False) -> Tuple[rsa.RSAPrivateKey, x509.Certificate]:
        """
        Load the CA from disk, creating it first if it does not exist.

        Args:
            force: Replace an existing CA

        Returns:
            Tuple of (private_key, certificate)
        """
        if not force and self.ca_key_path.exists() and self.ca_cert_path.exists():
            logger.info("Loading existing CA")
            return self.get_ca()

        logger.info("Creating new CA")
        private_key, cert = X509Utils.create_root_ca(
            common_name=self.common_name,
            organization=self.organization,
            country=self.country,
            key_size=self.key_size
        )

        X509Utils.save_private_key(private_key, self.ca_key_path)
        X509Utils.save_certificate(cert, self.ca_cert_path)

        self._private_key = private_key
        self._cert = cert

        # Clients and the VPN server expect a CRL to exist even before the first revocation
        self.write_crl([])

        logger.info(f"CA initialized: {self.common_name}")
        return private_key, cert

    def get_ca(self) -> Tuple[rsa.RSAPrivateKey, x509.Certificate]:
        """
        Get the CA (from cache or disk).

        Returns:
            Tuple of (private_key, certificate)

        Raises:
            FileNotFoundError: If the CA has not been initialized
        """
        if self._private_key and self._cert:
            return self._private_key, self._cert

        if not self.ca_key_path.exists() or not self.ca_cert_path.exists():
            raise FileNotFoundError("CA not initialized. Call initialize_ca() first.")

        self._private_key = X509Utils.load_private_key(self.ca_key_path)
        self._cert = X509Utils.load_certificate(self.ca_cert_path)

        return self._private_key, self._cert

    def write_crl(self, revoked: Iterable[Tuple[int, datetime]]) -> x509.CertificateRevocationList:
        """
        Regenerate and store the CRL.

        Args:
            revoked: (serial_number, revocation_date) pairs

        Returns:
            The new CRL
        """
        private_key, cert = self.get_ca()
        crl = X509Utils.create_crl(private_key, cert, revoked)
        X509Utils.save_crl(crl, self.crl_path)
        return crl

    def get_ca_info(self) -> dict:
        """
        Get CA information.

        Returns:
            Dictionary with CA details
        """
        _, cert = self.get_ca()

        return {
            "subject": cert.subject.rfc4514_string(),
            "serial_number": str(cert.serial_number),
            "not_valid_before": cert.not_valid_before_utc.isoformat(),
            "not_valid_after": cert.not_valid_after_utc.isoformat(),
            "fingerprint_sha256": CertificateVerifier.get_certificate_fingerprint(cert),
        }
