"""Runtime settings and credential discovery."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError, ProfileNotFound

from awscosts.client import DEFAULT_REGION
from awscosts.errors import ConfigurationError
from awscosts.models import Credentials

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    profile: str = "default"
    region: str | None = None
    timeout: float = 30.0
    retries: int = 3
    keep_zero_amounts: bool = True


def _env_number(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from e


def load_settings(
    profile: str | None = None,
    region: str | None = None,
) -> Settings:
    """Resolve settings from the environment; explicit arguments win."""
    zero_policy = os.environ.get("AWS_COSTS_ZERO_AMOUNTS", "keep").lower()
    if zero_policy not in ("keep", "drop"):
        raise ConfigurationError(
            f"AWS_COSTS_ZERO_AMOUNTS must be 'keep' or 'drop', got {zero_policy!r}"
        )
    return Settings(
        profile=profile or os.environ.get("AWS_PROFILE") or "default",
        region=(
            region
            or os.environ.get("AWS_REGION")
            or os.environ.get("AWS_DEFAULT_REGION")
            or None
        ),
        timeout=_env_number("AWS_COSTS_TIMEOUT", 30.0),
        retries=int(_env_number("AWS_COSTS_RETRIES", 3)),
        keep_zero_amounts=zero_policy == "keep",
    )


def resolve_credentials(profile: str = "default", region: str | None = None) -> Credentials:
    """Find credentials via the standard AWS chain (env vars, profile files).

    Region precedence: explicit argument, profile region, ``us-east-1``.

    Raises:
        ConfigurationError: unknown profile or no credentials found.
    """
    try:
        # "default" means the default chain, so env credentials still apply
        session = boto3.Session(profile_name=None if profile == "default" else profile)
        found = session.get_credentials()
    except ProfileNotFound as e:
        raise ConfigurationError(str(e), "check ~/.aws/config or AWS_PROFILE") from e
    except BotoCoreError as e:
        raise ConfigurationError(f"Could not load credentials: {e}") from e

    if found is None:
        raise ConfigurationError(
            f"No credentials found for profile '{profile}'",
            "run 'aws configure' or set AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY",
        )
    frozen = found.get_frozen_credentials()
    resolved_region = region or session.region_name or DEFAULT_REGION
    logger.info("Loaded credentials (%s) for region: %s", found.method, resolved_region)
    return Credentials(
        access_key_id=frozen.access_key,
        secret_access_key=frozen.secret_key,
        session_token=frozen.token or None,
        region=resolved_region,
    )
