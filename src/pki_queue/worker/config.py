"""Worker configuration, loaded from PKI_QUEUE_* environment variables or a .env file."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

REQUEST_ROLE = "request"
REVOKE_ROLE = "revoke"


class WorkerSettings(BaseSettings):
    """
    Settings for the certificate request worker.
    CLI options override the values loaded here.
    """

    # ------------------------------------------------------------
    # Runtime
    # ------------------------------------------------------------
    DEBUG: bool = False

    # ------------------------------------------------------------
    # AWS scope
    # ------------------------------------------------------------
    AWS_REGION: Optional[str] = None
    AWS_ROLE_ARN: Optional[str] = Field(
        default=None,
        description="IAM role assumed before talking to SQS and S3"
    )

    # ------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------
    REQUEST_QUEUE_URL: str = Field(
        default="",
        description="Explicit request queue URL; skips discovery when set"
    )
    REVOKE_QUEUE_URL: str = Field(
        default="",
        description="Explicit revocation queue URL; skips discovery when set"
    )
    REQUEST_QUEUE_PREFIX: str = "openvpn-requests-"
    REVOKE_QUEUE_PREFIX: str = "openvpn-revocations-"
    WAIT_TIME_SECONDS: int = Field(
        default=20,
        ge=1,
        le=20,
        description="Long-poll duration for each receive (SQS allows at most 20)"
    )
    BACKOFF_INITIAL_SECONDS: float = Field(default=1.0, gt=0)
    BACKOFF_MAX_SECONDS: float = Field(default=60.0, gt=0)

    # ------------------------------------------------------------
    # Stored endpoint fallback (backup bucket)
    # ------------------------------------------------------------
    BACKUP_BUCKET_TAG_KEY: str = "OpenVPNRole"
    BACKUP_BUCKET_TAG_VALUE: str = "BackupBucket"
    REQUEST_URL_OBJECT_KEY: str = "queues/request-url"
    REVOKE_URL_OBJECT_KEY: str = "queues/revoke-url"

    # ------------------------------------------------------------
    # Certificate authority
    # ------------------------------------------------------------
    PKI_STORAGE_PATH: Path = Path.home() / ".openvpn-admin" / "pki"
    CA_ORGANIZATION: str = "OpenVPN"
    CA_COMMON_NAME: str = "OpenVPN Client CA"
    CA_COUNTRY: str = Field(default="US", min_length=2, max_length=2)
    CA_KEY_SIZE: int = 4096
    CLIENT_KEY_SIZE: int = 2048
    CLIENT_CERT_VALIDITY_DAYS: int = Field(default=3650, ge=1)

    model_config = SettingsConfigDict(env_prefix="PKI_QUEUE_", env_file=".env", extra="ignore")

    def queue_prefix(self, role: str) -> str:
        return {REQUEST_ROLE: self.REQUEST_QUEUE_PREFIX, REVOKE_ROLE: self.REVOKE_QUEUE_PREFIX}[role]

    def url_object_key(self, role: str) -> str:
        return {REQUEST_ROLE: self.REQUEST_URL_OBJECT_KEY, REVOKE_ROLE: self.REVOKE_URL_OBJECT_KEY}[role]

    def queue_url_override(self, role: str) -> str:
        return {REQUEST_ROLE: self.REQUEST_QUEUE_URL, REVOKE_ROLE: self.REVOKE_QUEUE_URL}[role]
