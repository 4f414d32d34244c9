"""boto3 client construction for both services."""
from __future__ import annotations

import logging

import boto3
from botocore.config import Config

from ..settings import Settings

logger = logging.getLogger(__name__)

# Fail fast in the UI instead of stacking SDK retries behind a spinner.
CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"}, connect_timeout=5, read_timeout=30)


def build_clients(settings: Settings):
    """Return ``(dynamodb_client, logs_client)`` from one boto3 session.

    Raises:
        botocore.exceptions.BotoCoreError: bad profile, missing region, etc.
    """
    session = boto3.Session(
        profile_name=settings.CIRRUS_AWS_PROFILE,
        region_name=settings.CIRRUS_AWS_REGION,
    )
    dynamodb = session.client("dynamodb", config=CLIENT_CONFIG)
    logs = session.client("logs", config=CLIENT_CONFIG)
    logger.info(
        "aws session ready (profile=%s, region=%s)",
        settings.CIRRUS_AWS_PROFILE or "default",
        session.region_name,
    )
    return dynamodb, logs
