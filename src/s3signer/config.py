"""Configuration loading and Pydantic models for s3signer."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from s3signer.models import Credentials, SignatureVersion, SigningContext


class ClientConfig(BaseModel):
    """Endpoint addressing and signing variant."""

    endpoint: str = "s3.amazonaws.com"
    region: str = "us-east-1"
    scheme: Literal["https", "http"] = "https"
    addressing_style: Literal["virtual", "path"] = "virtual"
    signature_version: Literal["v2", "v4"] = "v4"


class CredentialsConfig(BaseModel):
    """Static access key pair."""

    access_key: str = ""
    secret_key: str = ""
    session_token: str | None = None


class PresignConfig(BaseModel):
    """Presigned URL defaults."""

    default_expires: int = 3600


class LoggingConfig(BaseModel):
    """Log level and output format."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus metrics toggle."""

    enabled: bool = False


class S3SignerConfig(BaseModel):
    """Top-level s3signer configuration."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    presign: PresignConfig = Field(default_factory=PresignConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    def signing_context(self) -> SigningContext:
        """Build the signing context described by the ``client`` section."""
        return SigningContext(
            region=self.client.region,
            variant=SignatureVersion(self.client.signature_version),
        )

    def to_credentials(self) -> Credentials:
        return Credentials(
            access_key_id=self.credentials.access_key,
            secret_access_key=self.credentials.secret_key,
            session_token=self.credentials.session_token or None,
        )


def _parse_client(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the client section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    return {
        "endpoint": data.get("endpoint", "s3.amazonaws.com"),
        "region": data.get("region", "us-east-1"),
        "scheme": data.get("scheme", "https"),
        "addressing_style": data.get("addressing_style", "virtual"),
        "signature_version": str(data.get("signature_version", "v4")),
    }


def _parse_credentials(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the credentials section from YAML data."""
    if data is None:
        return {}
    return {
        "access_key": data.get("access_key", ""),
        "secret_key": data.get("secret_key", ""),
        "session_token": data.get("session_token"),
    }


def _parse_presign(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the presign section from YAML data."""
    if data is None:
        return {}
    return {"default_expires": data.get("default_expires", 3600)}


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the metrics section from YAML data."""
    if data is None:
        return {}
    return {"enabled": data.get("enabled", False)}


def load_config(path: Path) -> S3SignerConfig:
    """Load an S3SignerConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated S3SignerConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return S3SignerConfig(
        client=ClientConfig(**_parse_client(raw.get("client"))),
        credentials=CredentialsConfig(**_parse_credentials(raw.get("credentials"))),
        presign=PresignConfig(**_parse_presign(raw.get("presign"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**_parse_metrics(raw.get("metrics"))),
    )
