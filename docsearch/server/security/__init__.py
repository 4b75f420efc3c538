"""Security package for the docsearch API."""

from .rate_limiting import setup_rate_limiting, rate_limit_handler, get_client_ip

__all__ = [
    'setup_rate_limiting',
    'rate_limit_handler',
    'get_client_ip'
]
