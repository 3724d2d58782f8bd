"""
Back-Office Resolution - Configuration Management

The API token is not configured here: it is forwarded per request, or
loaded by BaseBackofficeClient from Vault / BACKOFFICE_API_TOKEN.
"""
import os

from common.base_client import DEFAULT_API_URL


class Config:
    """Application configuration, read from the environment on access"""

    @property
    def api_url(self) -> str:
        """Back-office REST API root"""
        return os.getenv('BACKOFFICE_API_URL', DEFAULT_API_URL)

    @property
    def host(self) -> str:
        return os.getenv('BACKOFFICE_HOST', '127.0.0.1')

    @property
    def port(self) -> int:
        return int(os.getenv('BACKOFFICE_PORT', '5000'))

    @property
    def debug(self) -> bool:
        return os.getenv('BACKOFFICE_DEBUG', '').lower() in ('1', 'true', 'yes')


config = Config()
