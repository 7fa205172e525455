"""Configuration loading and Pydantic models for s3presign."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr

from s3presign.errors import ConfigurationError

DEFAULT_EXPIRATION_SECONDS = 300


class AWSConfig(BaseModel):
    """Credentials and bucket location used to sign URLs."""

    access_key_id: str = ""
    secret_access_key: SecretStr = SecretStr("")
    region: str = ""
    bucket_name: str = ""

    def missing_fields(self) -> list[str]:
        """Return the names of required fields that are empty."""
        missing = []
        if not self.access_key_id:
            missing.append("access_key_id")
        if not self.secret_access_key.get_secret_value():
            missing.append("secret_access_key")
        if not self.region:
            missing.append("region")
        if not self.bucket_name:
            missing.append("bucket_name")
        return missing

    def require_complete(self) -> None:
        """Raise ConfigurationError if any required field is empty."""
        missing = self.missing_fields()
        if missing:
            raise ConfigurationError(missing)


class PresignSettings(BaseModel):
    """Defaults applied when issuing URLs."""

    expiration_seconds: int = DEFAULT_EXPIRATION_SECONDS


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"


class ObservabilityConfig(BaseModel):
    """Metrics configuration."""

    metrics: bool = False
    metrics_file: str | None = None


class PresignConfig(BaseModel):
    """Top-level s3presign configuration."""

    aws: AWSConfig = Field(default_factory=AWSConfig)
    presign: PresignSettings = Field(default_factory=PresignSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _parse_aws(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the aws section from YAML data.

    Handles nested structure: aws.s3.bucket -> bucket_name
    """
    if data is None:
        return {}
    result: dict[str, Any] = {
        "access_key_id": str(data.get("access_key_id") or ""),
        "secret_access_key": str(data.get("secret_access_key") or ""),
        "region": str(data.get("region") or ""),
    }
    s3_section = data.get("s3")
    if isinstance(s3_section, dict):
        result["bucket_name"] = str(s3_section.get("bucket") or "")
    elif "bucket_name" in data:
        result["bucket_name"] = str(data.get("bucket_name") or "")
    return result


def _parse_presign(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the presign section from YAML data."""
    if data is None:
        return {}
    return {
        "expiration_seconds": data.get("expiration_seconds", DEFAULT_EXPIRATION_SECONDS),
    }


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {
        "metrics": data.get("metrics", False),
        "metrics_file": data.get("metrics_file"),
    }


def load_config(path: Path) -> PresignConfig:
    """Load a PresignConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated PresignConfig validated by Pydantic. Missing
        credentials are not an error here; see AWSConfig.require_complete().

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return PresignConfig(
        aws=AWSConfig(**_parse_aws(raw.get("aws"))),
        presign=PresignSettings(**_parse_presign(raw.get("presign"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        observability=ObservabilityConfig(**_parse_observability(raw.get("observability"))),
    )


def load_config_from_env(environ: Mapping[str, str] | None = None) -> PresignConfig:
    """Build a PresignConfig from environment variables.

    Reads AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_REGION,
    AWS_S3_BUCKET_NAME, PRESIGN_EXPIRATION_SECONDS, LOG_LEVEL and LOG_FORMAT.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        The resulting PresignConfig.
    """
    env = os.environ if environ is None else environ

    presign: dict[str, Any] = {}
    if env.get("PRESIGN_EXPIRATION_SECONDS"):
        presign["expiration_seconds"] = env["PRESIGN_EXPIRATION_SECONDS"]

    logging_section: dict[str, Any] = {}
    if env.get("LOG_LEVEL"):
        logging_section["level"] = env["LOG_LEVEL"]
    if env.get("LOG_FORMAT"):
        logging_section["format"] = env["LOG_FORMAT"]

    return PresignConfig(
        aws=AWSConfig(
            access_key_id=env.get("AWS_ACCESS_KEY_ID", ""),
            secret_access_key=env.get("AWS_SECRET_ACCESS_KEY", ""),
            region=env.get("AWS_REGION", ""),
            bucket_name=env.get("AWS_S3_BUCKET_NAME", ""),
        ),
        presign=PresignSettings(**presign),
        logging=LoggingConfig(**logging_section),
    )
