"""Test suite for the back-office REST client"""
import pytest
import requests
from unittest.mock import patch, Mock

from common.base_client import (
    BaseBackofficeClient,
    BackofficeAPIError,
    BackofficeUnauthorizedError,
    BackofficeForbiddenError,
    BackofficeNotFoundError,
    BackofficeValidationError,
    BackofficeRateLimitError,
    error_messages,
)


def _response(status_code, body=None, headers=None, content=b'{}'):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.content = content
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body if body is not None else {}
    return response


class TestTokenLoading:
    """Token resolution order: explicit, Vault, environment"""

    def test_explicit_token_wins(self):
        """Test caller token is used as-is"""
        client = BaseBackofficeClient(token='caller-token')
        assert client.api_token == 'caller-token'

    def test_env_token_used_when_vault_disconnected(self, monkeypatch):
        """Test environment token fallback"""
        monkeypatch.setenv('BACKOFFICE_API_TOKEN', 'env-token')
        client = BaseBackofficeClient()
        assert client.api_token == 'env-token'

    def test_vault_token_preferred_over_env(self, monkeypatch):
        """Test Vault token wins over environment"""
        class ConnectedVault:
            def is_connected(self):
                return True

            def kv_get(self, path):
                assert path == 'secret/backoffice/api_token'
                return {'token': 'vault-token'}

        monkeypatch.setattr('common.base_client.VaultClient', ConnectedVault)
        monkeypatch.setenv('BACKOFFICE_API_TOKEN', 'env-token')

        assert BaseBackofficeClient().api_token == 'vault-token'

    def test_missing_token_raises(self, monkeypatch):
        """Test missing token raises unauthorized"""
        monkeypatch.delenv('BACKOFFICE_API_TOKEN', raising=False)
        with pytest.raises(BackofficeUnauthorizedError):
            BaseBackofficeClient()

    def test_base_url_from_env(self, monkeypatch):
        """Test API root from environment"""
        monkeypatch.setenv('BACKOFFICE_API_URL', 'http://example.test/api/')
        client = BaseBackofficeClient(token='t')
        assert client.base_url == 'http://example.test/api'

    def test_timeout_from_env(self, monkeypatch):
        """Test request timeout is read from BACKOFFICE_API_TIMEOUT"""
        monkeypatch.setenv('BACKOFFICE_API_TIMEOUT', '3.5')
        assert BaseBackofficeClient(token='t').timeout == 3.5
        assert BaseBackofficeClient(token='t', timeout=1).timeout == 1


class TestRequests:
    """GET/POST success paths"""

    @patch('common.base_client.requests.get')
    def test_get_sends_bearer_token(self, mock_get):
        """Test GET sends bearer token and params"""
        mock_get.return_value = _response(200, {'data': []})
        client = BaseBackofficeClient(token='abc', base_url='http://api.test')

        result = client.get('/bank-accounts', {'per_page': 10})

        assert result == {'data': []}
        args, kwargs = mock_get.call_args
        assert args[0] == 'http://api.test/bank-accounts'
        assert kwargs['headers']['Authorization'] == 'Bearer abc'
        assert kwargs['params'] == {'per_page': 10}

    @patch('common.base_client.requests.post')
    def test_post_sends_json(self, mock_post):
        """Test POST sends JSON body"""
        mock_post.return_value = _response(201, {'success': True})
        client = BaseBackofficeClient(token='abc', base_url='http://api.test')

        result = client.post('/safedrop-resolutions/resolve', {'daily_sale_id': 1})

        assert result == {'success': True}
        assert mock_post.call_args[1]['json'] == {'daily_sale_id': 1}

    @patch('common.base_client.requests.post')
    def test_empty_success_body(self, mock_post):
        """Test empty 2xx body returns empty dict"""
        mock_post.return_value = _response(204, content=b'')
        client = BaseBackofficeClient(token='abc')
        assert client.post('/x', {}) == {}


class TestErrorMapping:
    """HTTP error statuses map to exception classes carrying the server message"""

    @pytest.mark.parametrize('status,error_class', [
        (401, BackofficeUnauthorizedError),
        (403, BackofficeForbiddenError),
        (404, BackofficeNotFoundError),
        (422, BackofficeValidationError),
        (500, BackofficeAPIError),
    ])
    @patch('common.base_client.requests.get')
    def test_status_to_exception(self, mock_get, status, error_class):
        """Test HTTP status maps to exception class"""
        mock_get.return_value = _response(status, {'message': 'Nope'})
        client = BaseBackofficeClient(token='abc')

        with pytest.raises(error_class) as exc_info:
            client.get('/x')

        assert exc_info.value.status_code == status
        assert exc_info.value.server_message == 'Nope'
        assert str(exc_info.value) == 'Nope'

    @patch('common.base_client.requests.post')
    def test_validation_errors_preserved(self, mock_post):
        """Test 422 field errors are kept"""
        mock_post.return_value = _response(422, {
            'message': 'The given data was invalid.',
            'errors': {'resolutions.0.amount': ['Amount exceeds pending amount']},
        })
        client = BaseBackofficeClient(token='abc')

        with pytest.raises(BackofficeValidationError) as exc_info:
            client.post('/safedrop-resolutions/resolve', {})

        assert exc_info.value.errors == {'resolutions.0.amount': ['Amount exceeds pending amount']}

    @patch('common.base_client.requests.get')
    def test_non_json_error_body(self, mock_get):
        """Test non-JSON error body"""
        mock_get.return_value = _response(502, ValueError('not json'))
        client = BaseBackofficeClient(token='abc')

        with pytest.raises(BackofficeAPIError) as exc_info:
            client.get('/x')

        assert exc_info.value.server_message is None
        assert '502' in str(exc_info.value)

    @patch('common.base_client.requests.get')
    def test_rate_limit(self, mock_get):
        """Test 429 carries Retry-After"""
        mock_get.return_value = _response(429, {}, headers={'Retry-After': '30'})
        client = BaseBackofficeClient(token='abc')

        with pytest.raises(BackofficeRateLimitError) as exc_info:
            client.get('/x')

        assert exc_info.value.retry_after == 30

    @patch('common.base_client.requests.get')
    def test_network_error(self, mock_get):
        """Test network failure wrapping"""
        mock_get.side_effect = requests.ConnectionError('refused')
        client = BaseBackofficeClient(token='abc')

        with pytest.raises(BackofficeAPIError) as exc_info:
            client.get('/x')

        assert exc_info.value.server_message is None
        assert 'Network error' in str(exc_info.value)


def test_error_messages_flattening():
    """Test field errors flatten to strings"""
    flat = error_messages({'amount': ['too big', 'not a number'], 'type': 'invalid'})
    assert flat == ['amount: too big', 'amount: not a number', 'type: invalid']
