"""Resolve a logical queue role to a concrete SQS queue URL."""

from dataclasses import dataclass
from typing import Optional
import logging

from botocore.exceptions import BotoCoreError, ClientError

from .config import REQUEST_ROLE, REVOKE_ROLE, WorkerSettings
from .errors import AmbiguousQueueError, InvalidEndpointError, QueueNotFoundError
from .models import is_valid_queue_url

logger = logging.getLogger(__name__)

# CLI option that disambiguates each role, named in AmbiguousQueueError
ROLE_OPTIONS = {
    REQUEST_ROLE: "--request-url",
    REVOKE_ROLE: "--revoke-url",
}

# Buckets whose tags cannot be read from this region/identity are skipped
IGNORED_TAGGING_ERRORS = frozenset({
    "NoSuchTagSet",
    "AuthorizationHeaderMalformed",
    "BucketRegionError",
    "PermanentRedirect",
    "AccessDenied",
})

OVERRIDE = "override"
DISCOVERY = "discovery"
STORED = "stored"


@dataclass(frozen=True)
class Endpoint:
    """A validated queue URL bound to a role for the lifetime of the worker."""

    role: str
    url: str
    source: str


class QueueResolver:
    """
    Three-tier queue resolution: explicit override, then discovery by queue
    name prefix, then an address stored in the backup bucket.
    """

    def __init__(self, sqs_client, s3_client, settings: WorkerSettings):
        self.sqs = sqs_client
        self.s3 = s3_client
        self.settings = settings
        self._backup_bucket: Optional[str] = None

    def resolve(self, role: str, override: Optional[str] = None) -> Endpoint:
        """
        Resolve role to an Endpoint.

        Args:
            role: "request" or "revoke"
            override: Explicit queue URL; wins without any discovery

        Raises:
            QueueNotFoundError: No queue carries the role's prefix and no stored address exists
            AmbiguousQueueError: More than one queue carries the role's prefix
            InvalidEndpointError: The chosen URL is not well formed
        """
        if role not in ROLE_OPTIONS:
            raise ValueError(f"Unknown queue role: {role}")

        if override:
            logger.debug(f"Using {role} queue URL from flags {override}")
            return self._validated(role, override, OVERRIDE)

        prefix = self.settings.queue_prefix(role)
        logger.debug(f"Locating {role} queue with prefix '{prefix}'")
        try:
            candidates = self.discover(prefix)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"Queue discovery failed ({e}); falling back to stored {role} queue URL")
            return self._validated(role, self.read_stored_url(role), STORED)

        if not candidates:
            raise QueueNotFoundError(role, prefix)
        if len(candidates) > 1:
            raise AmbiguousQueueError(role, prefix, candidates, ROLE_OPTIONS[role])

        return self._validated(role, candidates[0], DISCOVERY)

    def discover(self, prefix: str) -> list[str]:
        resp = self.sqs.list_queues(QueueNamePrefix=prefix)
        return list(resp.get("QueueUrls") or [])

    def read_stored_url(self, role: str) -> str:
        """Read the queue URL published for role in the backup bucket."""
        prefix = self.settings.queue_prefix(role)
        try:
            bucket = self.backup_bucket()
        except (BotoCoreError, ClientError) as e:
            raise QueueNotFoundError(role, prefix, reason=f"Could not search S3 buckets: {e}") from e
        if not bucket:
            raise QueueNotFoundError(
                role, prefix,
                reason=(
                    f"No S3 bucket tagged {self.settings.BACKUP_BUCKET_TAG_KEY}="
                    f"{self.settings.BACKUP_BUCKET_TAG_VALUE} holds a stored queue URL."
                ),
            )

        key = self.settings.url_object_key(role)
        try:
            res = self.s3.get_object(Bucket=bucket, Key=key)
            contents = res["Body"].read().decode("utf-8").strip()
        except (BotoCoreError, ClientError) as e:
            raise QueueNotFoundError(role, prefix, reason=f"Could not read s3://{bucket}/{key}: {e}") from e

        logger.debug(f"Read contents from s3://{bucket}/{key}")
        return contents

    def backup_bucket(self) -> Optional[str]:
        """Find the backup bucket by tag. Looked up once per resolver."""
        if self._backup_bucket is None:
            self._backup_bucket = self._find_bucket_with_tag(
                self.settings.BACKUP_BUCKET_TAG_KEY,
                self.settings.BACKUP_BUCKET_TAG_VALUE,
            )
        return self._backup_bucket

    def _find_bucket_with_tag(self, key: str, value: str) -> Optional[str]:
        for bucket in self.s3.list_buckets().get("Buckets", []):
            name = bucket["Name"]
            try:
                tag_set = self.s3.get_bucket_tagging(Bucket=name).get("TagSet", [])
            except ClientError as e:
                if e.response.get("Error", {}).get("Code", "") in IGNORED_TAGGING_ERRORS:
                    continue
                raise

            for tag in tag_set:
                if tag.get("Key") == key and tag.get("Value") == value:
                    logger.debug(f"Found S3 bucket {name} with {key}={value}")
                    return name

        return None

    def _validated(self, role: str, url: str, source: str) -> Endpoint:
        if not is_valid_queue_url(url):
            raise InvalidEndpointError(role, url)
        logger.info(f"Using {role} queue {url} ({source})")
        return Endpoint(role=role, url=url, source=source)
