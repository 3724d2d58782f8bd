"""Global pytest configuration for the back-office resolution project

Points the API client at a dummy backend and keeps Vault out of the
picture so no test ever touches the network by accident.
"""

import os

import pytest

os.environ.setdefault('BACKOFFICE_API_URL', 'http://backoffice.test/api')
os.environ.setdefault('BACKOFFICE_API_TOKEN', 'test-token')
os.environ.setdefault('VAULT_ADDR', 'http://127.0.0.1:8200')


@pytest.fixture(autouse=True)
def disconnected_vault(monkeypatch):
    """Make every VaultClient built by the API client report 'not connected'."""
    class DisconnectedVault:
        def is_connected(self):
            return False

        def kv_get(self, path):
            return None

    monkeypatch.setattr('common.base_client.VaultClient', lambda *args, **kwargs: DisconnectedVault())
    yield


@pytest.fixture
def pending_item_payload():
    """Raw pending item as the backend returns it (currency as strings)."""
    return {
        'id': 42,
        'date': '2025-03-14',
        'user': {'id': 7, 'name': 'Priya Shah'},
        'safedrops': {
            'total_amount': '1200.00',
            'resolved_amount': '1076.544',
            'pending_amount': '123.456',
        },
        'cash_in_hand': {
            'total_amount': 300,
            'resolved_amount': 300,
            'pending_amount': 0,
        },
    }


@pytest.fixture
def bank_account_payloads():
    return [
        {'id': 1, 'account_name': 'Operating', 'account_type': 'chequing', 'balance': '5400.10', 'is_active': True},
        {'id': 2, 'account_name': 'Payroll', 'account_type': 'chequing', 'balance': 980, 'is_active': True},
        {'id': 3, 'account_name': 'Old Savings', 'account_type': 'savings', 'balance': '0.00', 'is_active': False},
    ]
