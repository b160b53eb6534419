"""PKI Service - file-backed certificate authority for VPN clients."""

from .ca_manager import CAManager
from .cert_issuer import CertificateIssuer
from .gateway import (
    CertificateAuthorityGateway,
    CertificateExistsError,
    CertificateNotFoundError,
    PKIError,
)

__all__ = [
    'CAManager',
    'CertificateIssuer',
    'CertificateAuthorityGateway',
    'CertificateExistsError',
    'CertificateNotFoundError',
    'PKIError',
]
