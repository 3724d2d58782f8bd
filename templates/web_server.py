"""
Web Server Template for Back-Office Pending Resolution

Provides HTTP endpoints for the pending-amount resolution workflow:
- GET  /health                    - Liveness check
- GET  /api/pending               - Pending items, bank accounts and history
- POST /api/allocations/summary   - Totals/remaining/validity for draft rows
- POST /api/resolve               - Submit allocations for one day
- POST /api/resolve-all           - Resolve every pending item of one type
- GET  /api/history               - Paginated resolution history

The caller's "Authorization: Bearer <token>" header is forwarded to the
back-office API. The user's role is looked up per request and passed
explicitly to the access check.
"""

import logging
import traceback
from typing import Any, Dict, Optional, Tuple

from quart import Quart, jsonify, request

from common.base_client import BackofficeAPIError
from tools.backoffice.resolution.atoms.api_fetch import (
    fetch_bank_accounts,
    fetch_pending_items,
    fetch_profile,
    fetch_resolution_history,
)
from tools.backoffice.resolution.atoms.currency import format_currency
from tools.backoffice.resolution.atoms.permissions import get_role_display_name
from tools.backoffice.resolution.atoms.schemas import RESOLUTION_TYPES, ResolutionAllocation, User
from tools.backoffice.resolution.molecules.allocation_validator import summarize_allocations
from tools.backoffice.resolution.templates.resolution_workflow import (
    ResolutionAccessError,
    ensure_can_resolve,
    find_pending_item,
    load_dashboard,
    open_session,
    resolve_all_and_refresh,
    resolve_and_refresh,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Quart app
app = Quart(__name__)


@app.after_request
async def add_no_cache_headers(response):
    """Pending amounts change under other admins; never cache responses."""
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate, max-age=0'
    response.headers['Pragma'] = 'no-cache'
    response.headers['Expires'] = '0'
    return response


def _bearer_token() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        token = header[7:].strip()
        return token or None
    return None


def _error(message: str, status: int, **extra: Any) -> Tuple[Any, int]:
    return jsonify({'status': 'error', 'message': message, **extra}), status


def _api_error(e: BackofficeAPIError) -> Tuple[Any, int]:
    """Relay a back-office error, keeping its message and status."""
    status = e.status_code if e.status_code and 400 <= e.status_code < 600 else 502
    return _error(e.server_message or str(e), status)


def _current_user(token: Optional[str]) -> User:
    """Resolve the caller and check they may resolve pending amounts."""
    user = fetch_profile(token=token)
    ensure_can_resolve(user)
    return user


def _serialize_dashboard(dashboard: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'pending_items': [item.model_dump() for item in dashboard['pending_items']],
        'bank_accounts': [acc.model_dump() for acc in dashboard['bank_accounts'] if acc.is_active],
        'history': [rec.model_dump() for rec in dashboard['history']],
        'pending_safedrops_ids': [item.id for item in dashboard['pending_safedrops']],
        'pending_cash_in_hand_ids': [item.id for item in dashboard['pending_cash_in_hand']],
        'total_pending_safedrops': dashboard['total_pending_safedrops'],
        'total_pending_cash_in_hand': dashboard['total_pending_cash_in_hand'],
        'total_pending_safedrops_display': format_currency(dashboard['total_pending_safedrops']),
        'total_pending_cash_in_hand_display': format_currency(dashboard['total_pending_cash_in_hand']),
    }


def _parse_allocations(raw: Any) -> list:
    """
    Parse request rows into ResolutionAllocation.

    Raises:
        ValueError: If raw is not a non-empty list of objects
        pydantic.ValidationError: If a row has the wrong field types (also a ValueError)
    """
    if not isinstance(raw, list):
        raise ValueError('"resolutions" must be an array')
    if len(raw) == 0:
        raise ValueError('No resolutions provided')
    for idx, row in enumerate(raw):
        if not isinstance(row, dict):
            raise ValueError(f'Resolution at index {idx} is not an object')
    return [ResolutionAllocation.model_validate(row) for row in raw]


@app.route('/health')
async def health():
    return jsonify({'status': 'ok', 'service': 'backoffice-resolution'}), 200


@app.route('/api/pending', methods=['GET'])
async def pending():
    """
    Load the resolution dashboard.

    Returns:
        JSON with pending items, active bank accounts, recent history and
        per-type pending totals
    """
    token = _bearer_token()
    try:
        user = _current_user(token)
        dashboard = load_dashboard(token=token)
    except ResolutionAccessError as e:
        return _error(str(e), 403)
    except BackofficeAPIError as e:
        logger.error(f"Error loading pending items: {e}")
        return _api_error(e)

    return jsonify({
        'status': 'success',
        'user': {'name': user.name, 'role': get_role_display_name(user.role)},
        'data': _serialize_dashboard(dashboard),
    }), 200


@app.route('/api/allocations/summary', methods=['POST'])
async def allocation_summary():
    """
    Compute totals for draft rows without touching the backend.

    Expected payload:
    {
        "pending_amount": 123.45 | "123.45",
        "resolutions": [{"bank_account_id": 1, "amount": 60, "notes": ""}]
    }
    """
    data = await request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return _error('Empty request body', 400)
    if 'pending_amount' not in data:
        return _error('Missing "pending_amount" field in payload', 400)

    try:
        allocations = _parse_allocations(data.get('resolutions'))
    except ValueError as e:
        return _error(str(e), 400)

    summary = summarize_allocations(data['pending_amount'], allocations)
    return jsonify({
        'status': 'success',
        'summary': dict(summary),
        'remaining_display': format_currency(summary['remaining']),
        'total_allocated_display': format_currency(summary['total_allocated']),
    }), 200


@app.route('/api/resolve', methods=['POST'])
async def resolve():
    """
    Submit allocations for one day's pending amount.

    Expected payload:
    {
        "daily_sale_id": 42,
        "type": "safedrops" | "cash_in_hand",
        "resolutions": [
            {"bank_account_id": 3, "amount": 60.00, "notes": "optional"}
        ]
    }

    The pending amount is taken from a fresh pending list, never from the
    request.
    """
    data = await request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return _error('Empty request body', 400)

    for field in ('daily_sale_id', 'type', 'resolutions'):
        if field not in data:
            return _error(f'Missing "{field}" field in payload', 400)

    resolution_type = data['type']
    if resolution_type not in RESOLUTION_TYPES:
        return _error('"type" must be "safedrops" or "cash_in_hand"', 400)

    try:
        daily_sale_id = int(data['daily_sale_id'])
        allocations = _parse_allocations(data['resolutions'])
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)

    token = _bearer_token()
    try:
        _current_user(token)
        item = find_pending_item(fetch_pending_items(token=token), daily_sale_id)
        if item is None:
            return _error(f'No pending amounts for daily sale {daily_sale_id}', 404)

        session = open_session(item, resolution_type, fetch_bank_accounts(token=token), token=token)
        session.set_allocations(allocations)

        inactive = _inactive_targets(session)
        if inactive:
            return _error(
                'Allocation is not valid', 400,
                errors=[f'Bank account {acc_id} is not active' for acc_id in inactive]
            )

        result = resolve_and_refresh(session)
    except ResolutionAccessError as e:
        return _error(str(e), 403)
    except BackofficeAPIError as e:
        logger.error(f"Error resolving daily sale {data.get('daily_sale_id')}: {e}")
        return _api_error(e)
    except Exception as e:
        logger.error(f"Error in resolve: {e}")
        logger.error(traceback.format_exc())
        return _error(str(e), 500)

    summary = dict(result['summary'])
    if result['status'] == 'invalid':
        return _error(result['message'], 400, errors=result['errors'], summary=summary)
    if result['status'] == 'failed':
        status = result.get('status_code') or 502
        return _error(result['message'], status, errors=result['errors'], summary=summary)

    logger.info(f"Resolved daily sale {daily_sale_id} ({resolution_type})")
    return jsonify({
        'status': 'success',
        'message': result['message'],
        'summary': summary,
        'data': _serialize_dashboard(result['dashboard']) if result['dashboard'] else None,
    }), 200


def _inactive_targets(session) -> list:
    """Selected account ids that are not among the session's active accounts."""
    active_ids = {acc.id for acc in session.bank_accounts}
    return [
        row.bank_account_id for row in session.allocations
        if row.bank_account_id > 0 and row.bank_account_id not in active_ids
    ]


@app.route('/api/resolve-all', methods=['POST'])
async def resolve_all():
    """
    Resolve every pending item of one type into a single bank account.

    Expected payload:
    {
        "type": "safedrops" | "cash_in_hand",
        "bank_account_id": 3,
        "notes": "optional"
    }
    """
    data = await request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return _error('Empty request body', 400)

    resolution_type = data.get('type')
    if resolution_type not in RESOLUTION_TYPES:
        return _error('"type" must be "safedrops" or "cash_in_hand"', 400)

    try:
        bank_account_id = int(data.get('bank_account_id') or 0)
    except (TypeError, ValueError):
        return _error('"bank_account_id" must be an integer', 400)
    if bank_account_id <= 0:
        return _error('Select a bank account', 400)

    token = _bearer_token()
    try:
        _current_user(token)
        result = resolve_all_and_refresh(
            resolution_type,
            bank_account_id,
            notes=data.get('notes'),
            token=token
        )
    except ResolutionAccessError as e:
        return _error(str(e), 403)
    except BackofficeAPIError as e:
        logger.error(f"Error in resolve-all: {e}")
        return _api_error(e)

    body = {
        'status': 'success' if result['status'] == 'success' else 'error',
        'message': result['message'],
        'total': result['total'],
        'succeeded': result['succeeded'],
        'resolved_ids': result['resolved_ids'],
        'data': _serialize_dashboard(result['dashboard']) if result['dashboard'] else None,
    }
    return jsonify(body), 200 if result['status'] == 'success' else 409


@app.route('/api/history', methods=['GET'])
async def history():
    """Paginated resolution history (?page=1&per_page=20)."""
    try:
        page = int(request.args.get('page', 1))
        per_page = int(request.args.get('per_page', 20))
    except ValueError:
        return _error('"page" and "per_page" must be integers', 400)
    if page < 1 or per_page < 1:
        return _error('"page" and "per_page" must be positive', 400)

    token = _bearer_token()
    try:
        _current_user(token)
        records = fetch_resolution_history(token=token, page=page, per_page=per_page)
    except ResolutionAccessError as e:
        return _error(str(e), 403)
    except BackofficeAPIError as e:
        return _api_error(e)

    return jsonify({
        'status': 'success',
        'page': page,
        'per_page': per_page,
        'data': [rec.model_dump() for rec in records],
    }), 200


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return _error('Endpoint not found', 404)


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error(f"Internal server error: {error}")
    return _error('Internal server error', 500)


if __name__ == '__main__':
    logger.info("Starting back-office resolution web server")
    app.run(debug=True, host='127.0.0.1', port=5000)
