"""
Environment configuration for the catalog sync Lambda.
"""

import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from exceptions import ConfigurationError

DEFAULT_REGION = "eu-west-1"
TRUE_VALUES = ("1", "true", "yes", "on")


def _required(env: Mapping[str, str], key: str) -> str:
    value = env.get(key, "").strip()
    if not value:
        raise ConfigurationError(
            message=f"{key} environment variable not set",
            config_key=key,
        )
    return value


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            message=f"{key} must be an integer, got {raw!r}",
            config_key=key,
            original_exception=e,
        )
    if value < 1:
        raise ConfigurationError(message=f"{key} must be at least 1", config_key=key)
    return value


def load_secret_credential(secret_id: str, region: str) -> str:
    """
    Read the OpenAI key from Secrets Manager.

    The secret may be the bare key or a JSON object with an ``api_key`` field.
    """
    try:
        client = boto3.client("secretsmanager", region_name=region)
        response = client.get_secret_value(SecretId=secret_id)
    except (ClientError, BotoCoreError) as e:
        raise ConfigurationError(
            message=f"Failed to read secret {secret_id}: {e}",
            config_key="OPEN_AI_CREDENTIAL_SECRET",
            original_exception=e,
        )

    secret = response.get("SecretString") or ""
    try:
        parsed = json.loads(secret)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        secret = parsed.get("api_key") or ""

    if not secret:
        raise ConfigurationError(
            message=f"Secret {secret_id} does not hold an API key",
            config_key="OPEN_AI_CREDENTIAL_SECRET",
        )
    return secret


@dataclass(frozen=True)
class Settings:
    """Options recognized by a sync run."""
    source_region: str
    source_table: str
    assistant_id: str
    document_name: str
    openai_api_key: str
    allow_schema_drift: bool = True
    verify_max_attempts: int = 1
    localstack_endpoint: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or invalid
        """
        env = os.environ if env is None else env
        region = env.get("DYNAMODB_REGION") or DEFAULT_REGION

        api_key = env.get("OPEN_AI_CREDENTIAL", "").strip()
        if not api_key:
            secret_id = env.get("OPEN_AI_CREDENTIAL_SECRET", "").strip()
            if not secret_id:
                raise ConfigurationError(
                    message="OPEN_AI_CREDENTIAL environment variable not set",
                    config_key="OPEN_AI_CREDENTIAL",
                )
            api_key = load_secret_credential(secret_id, env.get("AWS_REGION") or region)

        return cls(
            source_region=region,
            source_table=_required(env, "DYNAMODB_PRODUCTS_TABLE"),
            assistant_id=_required(env, "ASSISTANT_PRODUCT_PICKER"),
            document_name=_required(env, "PRODUCTS_FILE_NAME"),
            openai_api_key=api_key,
            allow_schema_drift=env.get("ALLOW_SCHEMA_DRIFT", "true").strip().lower() in TRUE_VALUES,
            verify_max_attempts=_positive_int(env, "VERIFY_MAX_ATTEMPTS", 1),
            localstack_endpoint=env.get("LOCALSTACK_ENDPOINT") or None,
        )
