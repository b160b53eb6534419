"""X.509 certificate, CRL and key utilities for the client CA."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Tuple
from pathlib import Path
import logging

from cryptography import x509
from cryptography.x509.oid import NameOID, ExtendedKeyUsageOID
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa

logger = logging.getLogger(__name__)

# Tolerates small clock drift between the CA host and VPN clients.
BACKDATE = timedelta(minutes=5)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class X509Utils:
    """Utility class for X.509 certificate operations."""

    @staticmethod
    def generate_private_key(key_size: int = 4096) -> rsa.RSAPrivateKey:
        """
        Generate an RSA private key.

        Args:
            key_size: Size of the RSA key in bits (default: 4096)

        Returns:
            RSA private key object
        """
        logger.debug(f"Generating {key_size}-bit RSA private key")
        return rsa.generate_private_key(public_exponent=65537, key_size=key_size)

    @staticmethod
    def create_root_ca(
        common_name: str,
        organization: str,
        country: str = "US",
        validity_days: int = 3650,
        key_size: int = 4096
    ) -> Tuple[rsa.RSAPrivateKey, x509.Certificate]:
        """
        Create a self-signed CA certificate that signs client certificates and CRLs.

        Args:
            common_name: Common name for the CA
            organization: Organization name
            country: Two-letter country code
            validity_days: Certificate validity period in days
            key_size: RSA key size for the CA key

        Returns:
            Tuple of (private_key, certificate)
        """
        logger.info(f"Creating root CA: {common_name}")

        private_key = X509Utils.generate_private_key(key_size)
        now = utcnow()

        subject = issuer = x509.Name([
            x509.NameAttribute(NameOID.COUNTRY_NAME, country),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ])

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - BACKDATE)
            .not_valid_after(now + timedelta(days=validity_days))
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=0),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_cert_sign=True,
                    crl_sign=True,
                    key_encipherment=False,
                    content_commitment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
            .sign(private_key, hashes.SHA256())
        )

        logger.info(f"Root CA created successfully: {common_name}")
        return private_key, cert

    @staticmethod
    def create_client_certificate(
        username: str,
        organization: str,
        ca_private_key: rsa.RSAPrivateKey,
        ca_cert: x509.Certificate,
        validity_days: int = 3650,
        country: str = "US",
        key_size: int = 2048
    ) -> Tuple[rsa.RSAPrivateKey, x509.Certificate]:
        """
        Create a VPN client certificate whose common name is the username.

        The certificate never outlives the CA that signs it.
        """
        logger.info(f"Creating client certificate for: {username}")

        private_key = X509Utils.generate_private_key(key_size)
        now = utcnow()
        not_valid_after = min(now + timedelta(days=validity_days), ca_cert.not_valid_after_utc)

        subject = x509.Name([
            x509.NameAttribute(NameOID.COUNTRY_NAME, country),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization),
            x509.NameAttribute(NameOID.COMMON_NAME, username),
        ])

        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(ca_cert.subject)
            .public_key(private_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - BACKDATE)
            .not_valid_after(not_valid_after)
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    key_encipherment=True,
                    key_cert_sign=False,
                    crl_sign=False,
                    content_commitment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.CLIENT_AUTH]),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_private_key.public_key()),
                critical=False,
            )
            .sign(ca_private_key, hashes.SHA256())
        )

        logger.info(f"Client certificate created: {username} (serial: {cert.serial_number})")
        return private_key, cert

    @staticmethod
    def create_crl(
        ca_private_key: rsa.RSAPrivateKey,
        ca_cert: x509.Certificate,
        revoked: Iterable[Tuple[int, datetime]],
        next_update_days: int = 180
    ) -> x509.CertificateRevocationList:
        """
        Build a CRL listing every revoked serial number.

        Args:
            ca_private_key: CA private key for signing
            ca_cert: CA certificate
            revoked: (serial_number, revocation_date) pairs
            next_update_days: Days until the CRL should be refreshed

        Returns:
            Signed certificate revocation list
        """
        now = utcnow()
        builder = (
            x509.CertificateRevocationListBuilder()
            .issuer_name(ca_cert.subject)
            .last_update(now)
            .next_update(now + timedelta(days=next_update_days))
        )

        count = 0
        for serial_number, revocation_date in revoked:
            builder = builder.add_revoked_certificate(
                x509.RevokedCertificateBuilder()
                .serial_number(serial_number)
                .revocation_date(revocation_date)
                .build()
            )
            count += 1

        crl = builder.sign(ca_private_key, hashes.SHA256())
        logger.info(f"CRL generated with {count} revoked certificate(s)")
        return crl

    @staticmethod
    def certificate_to_pem(cert: x509.Certificate) -> str:
        return cert.public_bytes(serialization.Encoding.PEM).decode()

    @staticmethod
    def private_key_to_pem(private_key: rsa.RSAPrivateKey) -> str:
        return private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        ).decode()

    @staticmethod
    def create_bundle(cert_pem: str, key_pem: str, ca_pem: str) -> str:
        """
        Combine a client certificate, its private key and the CA certificate.

        Returns:
            PEM bundle, certificate first
        """
        return (
            "# Client Certificate\n" + cert_pem
            + "# Private Key\n" + key_pem
            + "# CA Certificate\n" + ca_pem
        )

    @staticmethod
    def save_private_key(private_key: rsa.RSAPrivateKey, path: Path):
        """
        Save an unencrypted private key, readable by the owner only.

        Args:
            private_key: RSA private key to save
            path: File path to save to
        """
        logger.info(f"Saving private key to: {path}")

        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        )

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pem)
        path.chmod(0o600)  # Restrict permissions

    @staticmethod
    def save_certificate(cert: x509.Certificate, path: Path):
        logger.info(f"Saving certificate to: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))

    @staticmethod
    def save_crl(crl: x509.CertificateRevocationList, path: Path):
        logger.info(f"Saving CRL to: {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(crl.public_bytes(serialization.Encoding.PEM))

    @staticmethod
    def load_private_key(path: Path) -> rsa.RSAPrivateKey:
        logger.debug(f"Loading private key from: {path}")
        return serialization.load_pem_private_key(path.read_bytes(), password=None)

    @staticmethod
    def load_certificate(path: Path) -> x509.Certificate:
        logger.debug(f"Loading certificate from: {path}")
        return x509.load_pem_x509_certificate(path.read_bytes())
