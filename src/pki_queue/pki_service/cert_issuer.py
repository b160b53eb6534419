"""Client certificate issuance, revocation and index management."""

from pathlib import Path
from typing import Optional
import logging

from ..crypto_utils import X509Utils, CertificateVerifier, utcnow
from .ca_manager import CAManager
from .gateway import (
    CertificateAuthorityGateway,
    CertificateExistsError,
    CertificateNotFoundError,
)
from .models import CertificateIndex, IssuedCertificate

logger = logging.getLogger(__name__)


class CertificateIssuer(CertificateAuthorityGateway):
    """File-backed certificate authority for VPN client certificates."""

    def __init__(
        self,
        ca_manager: CAManager,
        cert_storage_path: Path,
        validity_days: int = 3650,
        key_size: int = 2048
    ):
        """
        Initialize Certificate Issuer.

        Args:
            ca_manager: CA Manager instance
            cert_storage_path: Path for the index and issued certificates
            validity_days: Validity of newly issued client certificates
            key_size: RSA key size for client keys
        """
        self.ca_manager = ca_manager
        self.cert_storage_path = Path(cert_storage_path)
        self.cert_storage_path.mkdir(parents=True, exist_ok=True)
        self.index_path = self.cert_storage_path / "index.json"
        self.validity_days = validity_days
        self.key_size = key_size

        logger.info(f"Certificate Issuer initialized with storage: {cert_storage_path}")

    def load_index(self) -> CertificateIndex:
        if not self.index_path.exists():
            return CertificateIndex()
        return CertificateIndex.model_validate_json(self.index_path.read_text())

    def _save_index(self, index: CertificateIndex):
        tmp_path = self.index_path.with_suffix(".json.tmp")
        tmp_path.write_text(index.model_dump_json(indent=2))
        tmp_path.replace(self.index_path)

    def has_valid_certificate(self, username: str) -> bool:
        return bool(self.load_index().valid_for(username, utcnow()))

    def issue(self, username: str) -> str:
        """
        Issue a client certificate for username.

        Args:
            username: Client identity, used as the certificate common name

        Returns:
            PEM bundle with the client certificate, its private key and the CA certificate

        Raises:
            CertificateExistsError: If username already holds a valid certificate
            FileNotFoundError: If the CA has not been initialized
        """
        if not username:
            raise ValueError("username must not be empty")

        index = self.load_index()
        if index.valid_for(username, utcnow()):
            raise CertificateExistsError(username)

        logger.info(f"Issuing client certificate for: {username}")

        ca_private_key, ca_cert = self.ca_manager.get_ca()
        private_key, cert = X509Utils.create_client_certificate(
            username=username,
            organization=self.ca_manager.organization,
            ca_private_key=ca_private_key,
            ca_cert=ca_cert,
            validity_days=self.validity_days,
            country=self.ca_manager.country,
            key_size=self.key_size
        )

        cert_pem = X509Utils.certificate_to_pem(cert)
        X509Utils.save_certificate(cert, self.cert_storage_path / f"{cert.serial_number}.crt")

        index.certificates.append(IssuedCertificate(
            username=username,
            serial_number=str(cert.serial_number),
            not_valid_before=cert.not_valid_before_utc,
            not_valid_after=cert.not_valid_after_utc,
            fingerprint_sha256=CertificateVerifier.get_certificate_fingerprint(cert),
        ))
        self._save_index(index)

        logger.info(f"Client certificate issued: {username} (serial: {cert.serial_number})")

        return X509Utils.create_bundle(
            cert_pem,
            X509Utils.private_key_to_pem(private_key),
            X509Utils.certificate_to_pem(ca_cert)
        )

    def revoke(self, username: str) -> None:
        """
        Revoke every valid certificate held by username and refresh the CRL.

        Raises:
            CertificateNotFoundError: If username holds no valid certificate
        """
        now = utcnow()
        index = self.load_index()
        entries = index.valid_for(username, now)
        if not entries:
            raise CertificateNotFoundError(username)

        for entry in entries:
            entry.revoked_at = now
            logger.info(f"Revoking certificate for {username} (serial: {entry.serial_number})")

        self._save_index(index)
        self.ca_manager.write_crl(
            (int(entry.serial_number), entry.revoked_at) for entry in index.revoked()
        )

    def list_issued_certificates(self, username: Optional[str] = None) -> list[IssuedCertificate]:
        """
        List issued certificates, newest first.

        Args:
            username: Only list certificates issued to this username
        """
        certs = [
            entry for entry in self.load_index().certificates
            if username is None or entry.username == username
        ]
        return sorted(certs, key=lambda x: x.not_valid_before, reverse=True)
