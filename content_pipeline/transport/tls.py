import logging
import ssl
from typing import Optional

from ..config import MtlsConfig
from ..errors import UnsupportedEnvironmentError
from ..ingest.byte_source import ByteSourceFactory, LocalFilesystem

logger = logging.getLogger(__name__)


def create_ssl_context(mtls: MtlsConfig, sources: Optional[ByteSourceFactory] = None) -> ssl.SSLContext:
    """
    Build an SSL context that presents a client certificate.

    Args:
        mtls: Certificate, key and optional CA bundle paths
        sources: Environment capability; certificate files need filesystem access

    Returns:
        A verifying client SSLContext

    Raises:
        UnsupportedEnvironmentError: If the environment cannot read local files
    """
    sources = sources or LocalFilesystem()
    if not sources.filesystem_access:
        raise UnsupportedEnvironmentError("mTLS configuration requires filesystem access to load certificates")

    context = ssl.create_default_context(cafile=mtls.ca_path)
    context.load_cert_chain(certfile=mtls.cert_path, keyfile=mtls.key_path)
    logger.info(f"Loaded client certificate from {mtls.cert_path}")
    return context
