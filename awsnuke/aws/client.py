"""boto3 session and client construction."""

from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

# Client-side retries for transient errors; the batch driver handles longer throttling pauses
CLIENT_CONFIG = Config(
    retries={"max_attempts": 3, "mode": "adaptive"},
    max_pool_connections=50,
    connect_timeout=5,
    read_timeout=30,
)


def create_session(profile_name: Optional[str] = None, region_name: Optional[str] = None) -> boto3.session.Session:
    """Create a boto3 session.

    Args:
        profile_name: AWS profile name (optional)
        region_name: Default region for clients created from the session (optional)

    Returns:
        boto3 Session
    """
    logger.debug(f"Creating boto3 session (profile={profile_name}, region={region_name})")
    return boto3.session.Session(profile_name=profile_name, region_name=region_name)


def create_boto_client(
    service_name: str,
    region_name: Optional[str] = None,
    profile_name: Optional[str] = None,
    session: Optional[boto3.session.Session] = None,
):
    """Create a boto3 client with the shared retry configuration.

    Args:
        service_name: AWS service name (e.g., "ec2")
        region_name: AWS region (optional)
        profile_name: AWS profile name, ignored when a session is given (optional)
        session: Existing session to create the client from (optional)

    Returns:
        boto3 client for the service
    """
    if session is None:
        session = create_session(profile_name=profile_name, region_name=region_name)
    return session.client(service_name, region_name=region_name, config=CLIENT_CONFIG)
