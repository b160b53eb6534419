"""
AWS session and client factory.
Assumes the configured IAM role, when there is one, before creating clients.
"""
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.credentials import RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError
from botocore.session import get_session

logger = logging.getLogger(__name__)

SESSION_NAME = "pki-queue-worker"


def _assume_role_refresher(region: str, role_arn: str):
    """Build the callback botocore uses to fetch fresh assumed-role credentials."""
    sts = boto3.client("sts", region_name=region)

    def refresh() -> dict:
        try:
            credentials = sts.assume_role(
                RoleArn=role_arn, RoleSessionName=SESSION_NAME
            )["Credentials"]
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to assume role {role_arn}: {str(e)}")
            raise

        logger.info(f"Assumed role {role_arn} until {credentials['Expiration']}")
        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretAccessKey"],
            "token": credentials["SessionToken"],
            "expiry_time": credentials["Expiration"].isoformat(),
        }

    return refresh


def create_session(region: str, role_arn: Optional[str] = None) -> boto3.session.Session:
    """
    Create a boto3 session for region.

    With role_arn set the session carries refreshable credentials: the role is
    assumed again whenever the current credentials are about to expire.
    """
    if not role_arn:
        return boto3.session.Session(region_name=region)

    refresh = _assume_role_refresher(region, role_arn)
    credentials = RefreshableCredentials.create_from_metadata(
        metadata=refresh(),
        refresh_using=refresh,
        method="sts-assume-role",
    )

    botocore_session = get_session()
    # botocore offers no public setter for refreshable credentials
    botocore_session._credentials = credentials
    return boto3.session.Session(botocore_session=botocore_session, region_name=region)


def get_sqs_client(session: boto3.session.Session, wait_time_seconds: int = 20):
    """Get an SQS client whose read timeout outlasts the long poll."""
    config = Config(read_timeout=wait_time_seconds + 10)
    client = session.client("sqs", config=config)
    logger.debug("SQS client initialized")
    return client


def get_s3_client(session: boto3.session.Session):
    client = session.client("s3")
    logger.debug("S3 client initialized")
    return client
