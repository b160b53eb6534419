"""Cryptographic utilities for PKI operations."""

from .x509_utils import X509Utils, utcnow
from .verification import CertificateVerifier

__all__ = ['X509Utils', 'CertificateVerifier', 'utcnow']
