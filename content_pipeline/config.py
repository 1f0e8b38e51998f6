import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Used only when a ClientConfig is constructed without these values.
DEFAULT_SERVICE_URL = "http://localhost:8900"
DEFAULT_NAMESPACE = "default"


class MtlsConfig(BaseModel):
    """Client certificate settings for mutual TLS."""
    cert_path: str
    key_path: str
    ca_path: Optional[str] = None  # only when the service uses a custom CA


class ClientConfig(BaseModel):
    """Connection settings for one namespace-scoped client."""

    service_url: str = DEFAULT_SERVICE_URL
    namespace: str = DEFAULT_NAMESPACE
    timeout: float = Field(default=30.0, gt=0)  # seconds, per HTTP request
    poll_interval: float = Field(default=1.0, ge=0)  # seconds between completion polls
    mtls: Optional[MtlsConfig] = None

    @property
    def namespace_url(self) -> str:
        return f"{self.service_url.rstrip('/')}/namespaces/{self.namespace}"

    def with_namespace(self, namespace: str) -> "ClientConfig":
        return self.model_copy(update={"namespace": namespace})

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Variables from ``env_file`` (or a ``.env`` in the working directory)
        are loaded first without overriding the process environment.

        Args:
            env_file: Optional path to a dotenv file

        Returns:
            ClientConfig populated from CONTENT_PIPELINE_* variables
        """
        load_dotenv(env_file)

        mtls = None
        cert_path = os.getenv("CONTENT_PIPELINE_CERT_PATH")
        key_path = os.getenv("CONTENT_PIPELINE_KEY_PATH")
        if cert_path and key_path:
            mtls = MtlsConfig(
                cert_path=cert_path,
                key_path=key_path,
                ca_path=os.getenv("CONTENT_PIPELINE_CA_PATH") or None,
            )

        return cls(
            service_url=os.getenv("CONTENT_PIPELINE_SERVICE_URL", DEFAULT_SERVICE_URL),
            namespace=os.getenv("CONTENT_PIPELINE_NAMESPACE", DEFAULT_NAMESPACE),
            timeout=float(os.getenv("CONTENT_PIPELINE_TIMEOUT", "30")),
            poll_interval=float(os.getenv("CONTENT_PIPELINE_POLL_INTERVAL", "1")),
            mtls=mtls,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as a dictionary for logging/debugging."""
        return {
            "SERVICE_URL": self.service_url,
            "NAMESPACE": self.namespace,
            "TIMEOUT": self.timeout,
            "POLL_INTERVAL": self.poll_interval,
            "MTLS": self.mtls is not None,
        }
