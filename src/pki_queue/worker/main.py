"""
pki-queue command line.

Commands:
- init-ca: create or load the client CA
- process-requests: issue certificates for requests on the request queue
- process-revokes: revoke certificates for requests on the revocation queue
- list-certificates: show the CA index
"""

import logging
from typing import Optional

import click

from ..pki_service import CAManager, CertificateIssuer
from .aws_client import create_session, get_s3_client, get_sqs_client
from .config import REQUEST_ROLE, REVOKE_ROLE, WorkerSettings
from .dispatcher import Backoff, Dispatcher
from .errors import ConfigurationError
from .processor import RequestProcessor, RevokeProcessor
from .resolver import QueueResolver
from .transport import SqsTransport

logger = logging.getLogger(__name__)

PROCESSORS = {
    REQUEST_ROLE: RequestProcessor,
    REVOKE_ROLE: RevokeProcessor,
}


def configure_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.INFO)


def load_settings(**overrides) -> WorkerSettings:
    settings = WorkerSettings()
    update = {key: value for key, value in overrides.items() if value is not None}
    if update.get("DEBUG") is False:
        # an unset --debug flag must not clear PKI_QUEUE_DEBUG
        update.pop("DEBUG")
    return settings.model_copy(update=update)


def build_issuer(settings: WorkerSettings) -> CertificateIssuer:
    ca_manager = CAManager(
        settings.PKI_STORAGE_PATH,
        organization=settings.CA_ORGANIZATION,
        common_name=settings.CA_COMMON_NAME,
        country=settings.CA_COUNTRY,
        key_size=settings.CA_KEY_SIZE,
    )
    ca_manager.initialize_ca()
    return CertificateIssuer(
        ca_manager,
        settings.PKI_STORAGE_PATH / "issued",
        validity_days=settings.CLIENT_CERT_VALIDITY_DAYS,
        key_size=settings.CLIENT_KEY_SIZE,
    )


def serve(settings: WorkerSettings, role: str) -> int:
    """Resolve the role's queue and process it until a fatal error. Returns the exit code."""
    if not settings.AWS_REGION:
        raise click.UsageError("Missing AWS region: set --region or PKI_QUEUE_AWS_REGION.")
    logger.debug(f"Using AWS Region: {settings.AWS_REGION}")

    session = create_session(settings.AWS_REGION, settings.AWS_ROLE_ARN)
    sqs = get_sqs_client(session, settings.WAIT_TIME_SECONDS)
    resolver = QueueResolver(sqs, get_s3_client(session), settings)

    try:
        endpoint = resolver.resolve(role, settings.queue_url_override(role))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    dispatcher = Dispatcher(
        SqsTransport(sqs),
        PROCESSORS[role](build_issuer(settings)),
        endpoint,
        wait_seconds=settings.WAIT_TIME_SECONDS,
        backoff=Backoff(settings.BACKOFF_INITIAL_SECONDS, settings.BACKOFF_MAX_SECONDS),
    )
    return dispatcher.run()


def aws_options(func):
    func = click.option("--debug", is_flag=True, default=False, help="Enable debug logging.")(func)
    func = click.option("--timeout", type=click.IntRange(1, 20), default=None,
                        help="Long-poll wait in seconds.")(func)
    func = click.option("--role-arn", default=None, help="IAM role to assume.")(func)
    func = click.option("--region", default=None, help="AWS region of the queues.")(func)
    return func


@click.group()
def cli():
    """Certificate issuance over SQS request/reply queues."""


@cli.command("process-requests")
@click.option("--request-url", default=None, help="Request queue URL (skips discovery).")
@aws_options
@click.pass_context
def process_requests(ctx, request_url: Optional[str], region, role_arn, timeout, debug):
    """Issue certificates for requests arriving on the request queue."""
    settings = load_settings(
        AWS_REGION=region, AWS_ROLE_ARN=role_arn, REQUEST_QUEUE_URL=request_url,
        WAIT_TIME_SECONDS=timeout, DEBUG=debug,
    )
    configure_logging(settings.DEBUG)
    ctx.exit(serve(settings, REQUEST_ROLE))


@cli.command("process-revokes")
@click.option("--revoke-url", default=None, help="Revocation queue URL (skips discovery).")
@aws_options
@click.pass_context
def process_revokes(ctx, revoke_url: Optional[str], region, role_arn, timeout, debug):
    """Revoke certificates for requests arriving on the revocation queue."""
    settings = load_settings(
        AWS_REGION=region, AWS_ROLE_ARN=role_arn, REVOKE_QUEUE_URL=revoke_url,
        WAIT_TIME_SECONDS=timeout, DEBUG=debug,
    )
    configure_logging(settings.DEBUG)
    ctx.exit(serve(settings, REVOKE_ROLE))


@cli.command("init-ca")
@click.option("--debug", is_flag=True, default=False)
def init_ca(debug):
    """Create the client CA if it does not exist and print its details."""
    settings = load_settings(DEBUG=debug)
    configure_logging(settings.DEBUG)
    issuer = build_issuer(settings)
    for key, value in issuer.ca_manager.get_ca_info().items():
        click.echo(f"{key}: {value}")


@cli.command("list-certificates")
@click.option("--username", default=None, help="Only show certificates for this client.")
def list_certificates(username):
    """List issued client certificates, newest first."""
    settings = load_settings()
    configure_logging(settings.DEBUG)
    issuer = build_issuer(settings)
    for entry in issuer.list_issued_certificates(username):
        status = "revoked" if entry.revoked_at else "issued"
        click.echo(
            f"{entry.username}\t{entry.serial_number}\t{status}\t"
            f"{entry.not_valid_after.isoformat()}"
        )


if __name__ == "__main__":
    cli()
