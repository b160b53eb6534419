"""Data models for the certificate index."""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class IssuedCertificate(BaseModel):
    """One entry of the CA's index of issued client certificates."""

    username: str = Field(..., description="Common name the certificate was issued to")
    serial_number: str = Field(..., description="Certificate serial number (decimal string)")
    not_valid_before: datetime = Field(..., description="Certificate start date")
    not_valid_after: datetime = Field(..., description="Certificate expiration date")
    fingerprint_sha256: str = Field(..., description="SHA-256 fingerprint")
    revoked_at: Optional[datetime] = Field(None, description="Revocation time, if revoked")

    def is_valid(self, now: datetime) -> bool:
        """Whether the certificate is unrevoked and inside its validity window."""
        if self.revoked_at is not None:
            return False
        return self.not_valid_before <= now <= self.not_valid_after


class CertificateIndex(BaseModel):
    """Persistent list of issued certificates, oldest first."""

    certificates: list[IssuedCertificate] = Field(default_factory=list)

    def valid_for(self, username: str, now: datetime) -> list[IssuedCertificate]:
        return [
            entry for entry in self.certificates
            if entry.username == username and entry.is_valid(now)
        ]

    def revoked(self) -> list[IssuedCertificate]:
        return [entry for entry in self.certificates if entry.revoked_at is not None]
