from .http import HttpTransport
from .tls import create_ssl_context

__all__ = ["HttpTransport", "create_ssl_context"]
