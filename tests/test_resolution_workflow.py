"""Tests for the resolution workflow template"""
import pytest
from unittest.mock import patch, Mock

from common.base_client import BackofficeAPIError
from tools.backoffice.resolution.atoms.schemas import (
    BankAccount,
    PendingItem,
    ResolutionAllocation,
    User,
)
from tools.backoffice.resolution.templates.resolution_workflow import (
    ResolutionAccessError,
    ensure_can_resolve,
    find_pending_item,
    load_dashboard,
    open_session,
    pending_of_type,
    resolve_all_and_refresh,
    resolve_and_refresh,
    total_pending,
)

WORKFLOW = 'tools.backoffice.resolution.templates.resolution_workflow'


def make_item(item_id, safedrops=0, cash=0):
    return PendingItem.model_validate({
        'id': item_id,
        'date': '2025-03-1%d' % item_id,
        'safedrops': {'pending_amount': safedrops},
        'cash_in_hand': {'pending_amount': cash},
    })


@pytest.fixture
def accounts(bank_account_payloads):
    return [BankAccount.model_validate(a) for a in bank_account_payloads]


def test_ensure_can_resolve():
    """Test admin gate on the resolution system"""
    ensure_can_resolve(User(id=1, name='Admin', role='admin'))

    with pytest.raises(ResolutionAccessError, match='Only administrators'):
        ensure_can_resolve(User(id=2, name='Clerk', role='editor'))
    with pytest.raises(ResolutionAccessError):
        ensure_can_resolve(None)


def test_pending_partitions():
    """Test per-type pending lists and totals"""
    items = [make_item(1, safedrops=50), make_item(2, cash=20.5), make_item(3, safedrops=25, cash=4.5)]

    assert [i.id for i in pending_of_type(items, 'safedrops')] == [1, 3]
    assert [i.id for i in pending_of_type(items, 'cash_in_hand')] == [2, 3]
    assert total_pending(items, 'cash_in_hand') == 25.0


def test_find_pending_item():
    """Test lookup by daily sale id"""
    items = [make_item(1, safedrops=5), make_item(2, safedrops=5)]

    assert find_pending_item(items, 2).id == 2
    assert find_pending_item(items, 99) is None


@patch(f'{WORKFLOW}.fetch_resolution_history')
@patch(f'{WORKFLOW}.fetch_bank_accounts')
@patch(f'{WORKFLOW}.fetch_pending_items')
def test_load_dashboard(mock_pending, mock_accounts, mock_history, accounts):
    """Test dashboard fetch set and derived totals"""
    mock_pending.return_value = [make_item(1, safedrops=50), make_item(2, cash=20)]
    mock_accounts.return_value = accounts
    mock_history.return_value = []

    dashboard = load_dashboard(token='tok')

    assert [i.id for i in dashboard['pending_safedrops']] == [1]
    assert dashboard['total_pending_safedrops'] == 50.0
    assert [i.id for i in dashboard['pending_cash_in_hand']] == [2]
    assert dashboard['total_pending_cash_in_hand'] == 20.0
    assert dashboard['bank_accounts'] == accounts
    mock_pending.assert_called_once_with(token='tok')
    mock_accounts.assert_called_once_with(token='tok', per_page=1000)
    mock_history.assert_called_once_with(token='tok', per_page=20)


class TestResolveAndRefresh:
    """Submitting a session from the workflow"""

    def test_invalid_session_short_circuits(self, accounts):
        """Test invalid rows never reach submit"""
        session = open_session(make_item(1, safedrops=100), 'safedrops', accounts)
        session.submit = Mock()

        result = resolve_and_refresh(session)

        assert result['status'] == 'invalid'
        assert result['dashboard'] is None
        assert 'Allocation #1: select a bank account' in result['errors']
        session.submit.assert_not_called()

    @patch(f'{WORKFLOW}.load_dashboard')
    @patch('tools.backoffice.resolution.organisms.resolution_session.sync_resolution')
    def test_success_refetches(self, mock_sync, mock_load, accounts):
        """Test successful submit reloads the dashboard"""
        mock_sync.return_value = {'status': 'success', 'message': 'ok', 'errors': []}
        mock_load.return_value = {'pending_items': []}
        session = open_session(make_item(1, safedrops=100), 'safedrops', accounts, token='tok')
        session.set_allocations([
            ResolutionAllocation(bank_account_id=1, amount=60),
            ResolutionAllocation(bank_account_id=2, amount=40),
        ])

        result = resolve_and_refresh(session)

        assert result['status'] == 'success'
        assert result['message'] == 'Resolve Safedrops - 2025-03-11 completed'
        assert result['dashboard'] == {'pending_items': []}
        mock_load.assert_called_once_with(token='tok')

    @patch(f'{WORKFLOW}.load_dashboard')
    @patch('tools.backoffice.resolution.organisms.resolution_session.sync_resolution')
    def test_failure_does_not_refetch(self, mock_sync, mock_load, accounts):
        """Test rejected submit skips the reload"""
        mock_sync.return_value = {
            'status': 'failed',
            'message': 'Pending amount already resolved',
            'errors': [],
            'status_code': 422,
        }
        session = open_session(make_item(1, cash=10), 'cash_in_hand', accounts)
        session.set_allocations([ResolutionAllocation(bank_account_id=1, amount=10)])

        result = resolve_and_refresh(session)

        assert result['status'] == 'failed'
        assert result['message'] == 'Pending amount already resolved'
        assert result['status_code'] == 422
        assert result['dashboard'] is None
        mock_load.assert_not_called()


@patch(f'{WORKFLOW}.load_dashboard')
@patch(f'{WORKFLOW}.resolve_all_pending')
@patch(f'{WORKFLOW}.fetch_pending_items')
def test_resolve_all_refreshes_after_partial_success(mock_pending, mock_batch, mock_load):
    """Test batch reloads after partial success"""
    items = [make_item(1, safedrops=5)]
    mock_pending.return_value = items
    mock_batch.return_value = {'status': 'failed', 'total': 2, 'succeeded': 1, 'message': 'x', 'resolved_ids': [1]}
    mock_load.return_value = {'pending_items': []}

    result = resolve_all_and_refresh('safedrops', 3, notes='n', token='tok')

    mock_batch.assert_called_once_with(items, 'safedrops', 3, notes='n', token='tok')
    assert result['dashboard'] == {'pending_items': []}


@patch(f'{WORKFLOW}.load_dashboard')
@patch(f'{WORKFLOW}.resolve_all_pending')
@patch(f'{WORKFLOW}.fetch_pending_items')
def test_resolve_all_no_refresh_when_nothing_resolved(mock_pending, mock_batch, mock_load):
    """Test batch skips reload when nothing resolved"""
    mock_pending.return_value = []
    mock_batch.return_value = {'status': 'success', 'total': 0, 'succeeded': 0, 'message': '', 'resolved_ids': []}

    result = resolve_all_and_refresh('cash_in_hand', 3)

    assert result['dashboard'] is None
    mock_load.assert_not_called()


@patch(f'{WORKFLOW}.load_dashboard')
@patch('tools.backoffice.resolution.organisms.resolution_session.sync_resolution')
def test_committed_resolution_survives_refresh_failure(mock_sync, mock_load, accounts):
    """Test a failed reload after an accepted submit still reports success"""
    mock_sync.return_value = {'status': 'success', 'message': 'ok', 'errors': []}
    mock_load.side_effect = BackofficeAPIError('Network error: timeout')
    session = open_session(make_item(1, safedrops=100), 'safedrops', accounts, token='tok')
    session.set_allocations([ResolutionAllocation(bank_account_id=1, amount=100)])

    result = resolve_and_refresh(session)

    assert result['status'] == 'success'
    assert result['dashboard'] is None
    assert mock_sync.call_count == 1


@patch(f'{WORKFLOW}.load_dashboard')
@patch(f'{WORKFLOW}.resolve_all_pending')
@patch(f'{WORKFLOW}.fetch_pending_items')
def test_resolve_all_keeps_counts_when_refresh_fails(mock_pending, mock_batch, mock_load):
    """Test batch counts survive a failed dashboard reload"""
    mock_pending.return_value = [make_item(1, cash=5), make_item(2, cash=6)]
    mock_batch.return_value = {
        'status': 'failed', 'total': 2, 'succeeded': 1, 'message': 'x', 'resolved_ids': [1],
    }
    mock_load.side_effect = BackofficeAPIError('Network error: timeout')

    result = resolve_all_and_refresh('cash_in_hand', 3, token='tok')

    assert result['succeeded'] == 1
    assert result['resolved_ids'] == [1]
    assert result['dashboard'] is None
