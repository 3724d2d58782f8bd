"""Base API client utilities"""
import os
import requests
from typing import Any, Dict, List, Optional
from common.vault_client import VaultClient


DEFAULT_API_URL = 'http://127.0.0.1:8000/api'


class BackofficeAPIError(Exception):
    """Base exception for back-office API errors"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
        errors: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        self.server_message = server_message
        self.errors = errors or {}
        super().__init__(message)


class BackofficeUnauthorizedError(BackofficeAPIError):
    """401 - Missing or expired API token"""
    pass


class BackofficeForbiddenError(BackofficeAPIError):
    """403 - Authenticated user lacks permission"""
    pass


class BackofficeNotFoundError(BackofficeAPIError):
    """404 - Resource not found"""
    pass


class BackofficeValidationError(BackofficeAPIError):
    """422 - Backend rejected the payload"""
    pass


class BackofficeRateLimitError(BackofficeAPIError):
    """429 - Rate limit exceeded"""
    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded. Retry after {retry_after}s",
            status_code=429
        )


_STATUS_ERRORS = {
    401: BackofficeUnauthorizedError,
    403: BackofficeForbiddenError,
    404: BackofficeNotFoundError,
    422: BackofficeValidationError,
}


class BaseBackofficeClient:
    """Back-office REST client with authentication and error handling"""

    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        """
        Initialize client.

        Args:
            token: Bearer token forwarded from the caller. When omitted the
                token is loaded from Vault or the environment.
            base_url: API root, defaults to BACKOFFICE_API_URL
            timeout: Request timeout in seconds, defaults to BACKOFFICE_API_TIMEOUT
        """
        self.base_url = (base_url or os.getenv('BACKOFFICE_API_URL', DEFAULT_API_URL)).rstrip('/')
        self.timeout = timeout or float(os.getenv('BACKOFFICE_API_TIMEOUT', '10'))
        self.api_token = token or self._load_api_token()

    def _load_api_token(self) -> str:
        """
        Load API token from Vault or environment variable.

        Priority order:
        1. HashiCorp Vault: secret/backoffice/api_token
        2. Environment variable: BACKOFFICE_API_TOKEN

        Returns:
            API token string

        Raises:
            BackofficeUnauthorizedError: If no token found in Vault or environment
        """
        try:
            vault = VaultClient()
            if vault.is_connected():
                data = vault.kv_get('secret/backoffice/api_token')
                if data and 'token' in data:
                    return data['token']
        except requests.RequestException:
            # Vault unreachable, fall through to env var
            pass

        token = os.getenv('BACKOFFICE_API_TOKEN')
        if token:
            return token

        raise BackofficeUnauthorizedError(
            "No back-office API token found. Set BACKOFFICE_API_TOKEN env var or "
            "store in Vault at secret/backoffice/api_token",
            status_code=401
        )

    def _headers(self) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {self.api_token}',
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    def get(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        """
        Make authenticated GET request.

        Args:
            endpoint: API endpoint path (e.g., '/bank-accounts')
            params: Optional query parameters

        Returns:
            JSON response as dictionary

        Raises:
            BackofficeAPIError: Or one of its status-specific subclasses
        """
        url = f'{self.base_url}{endpoint}'
        try:
            response = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackofficeAPIError(f"Network error: {str(e)}")
        return self._handle_response(response, endpoint)

    def post(self, endpoint: str, payload: Dict) -> Dict:
        """
        Make authenticated POST request with a JSON body.

        Args:
            endpoint: API endpoint path
            payload: JSON-serializable request body

        Returns:
            JSON response as dictionary

        Raises:
            BackofficeAPIError: Or one of its status-specific subclasses
        """
        url = f'{self.base_url}{endpoint}'
        try:
            response = requests.post(url, headers=self._headers(), json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise BackofficeAPIError(f"Network error: {str(e)}")
        return self._handle_response(response, endpoint)

    def _handle_response(self, response: requests.Response, endpoint: str) -> Dict:
        if 200 <= response.status_code < 300:
            if not response.content:
                return {}
            return response.json()

        body = _json_body(response)
        server_message = body.get('message') if isinstance(body.get('message'), str) else None
        errors = body.get('errors') if isinstance(body.get('errors'), dict) else None

        if response.status_code == 429:
            retry_after = int(response.headers.get('Retry-After', 60))
            raise BackofficeRateLimitError(retry_after)

        error_class = _STATUS_ERRORS.get(response.status_code, BackofficeAPIError)
        raise error_class(
            server_message or f"Back-office API error {response.status_code} on {endpoint}",
            status_code=response.status_code,
            server_message=server_message,
            errors=errors
        )


def _json_body(response: requests.Response) -> Dict:
    """Decode an error body, tolerating non-JSON responses."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def error_messages(errors: Dict[str, Any]) -> List[str]:
    """Flatten a field -> messages mapping into a list of strings."""
    flat = []
    for field, messages in errors.items():
        if isinstance(messages, list):
            flat.extend(f"{field}: {m}" for m in messages)
        else:
            flat.append(f"{field}: {messages}")
    return flat
