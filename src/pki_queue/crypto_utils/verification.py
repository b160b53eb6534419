"""Certificate fingerprinting for the CA index."""

from cryptography import x509
from cryptography.hazmat.primitives import hashes


class CertificateVerifier:
    """Utility class for client certificate checks."""

    @staticmethod
    def get_certificate_fingerprint(cert: x509.Certificate) -> str:
        """
        Get certificate fingerprint.

        Args:
            cert: Certificate

        Returns:
            Hex-encoded SHA-256 fingerprint
        """
        return cert.fingerprint(hashes.SHA256()).hex()
