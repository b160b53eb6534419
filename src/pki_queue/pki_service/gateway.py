"""Interface between the queue worker and the certificate authority."""

from abc import ABC, abstractmethod


class PKIError(Exception):
    """Base class for certificate authority failures."""
    pass


class CertificateExistsError(PKIError):
    """Raised when a username already holds a valid certificate."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"a valid certificate for {username} already exists")


class CertificateNotFoundError(PKIError):
    """Raised when a username holds no valid certificate to revoke."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"no valid certificate for {username} exists")


class CertificateAuthorityGateway(ABC):
    """Existence check, issuance and revocation for a client identity."""

    @abstractmethod
    def has_valid_certificate(self, username: str) -> bool:
        """Return True if an unrevoked, unexpired certificate exists for username."""
        raise NotImplementedError

    @abstractmethod
    def issue(self, username: str) -> str:
        """Issue a certificate for username and return it as PEM."""
        raise NotImplementedError

    @abstractmethod
    def revoke(self, username: str) -> None:
        """Revoke every valid certificate held by username."""
        raise NotImplementedError
