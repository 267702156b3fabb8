"""
Sync API
"""
from flask import Blueprint, current_app, request

from ..utils.responses import ApiResponse

sync_bp = Blueprint('sync', __name__)


def _orchestrator():
    return current_app.extensions['sync_orchestrator']


@sync_bp.route('/sync', methods=['POST'])
def trigger_sync():
    """
    Trigger a sync for one account or for all accounts

    Request Body:
        - accountId: account to sync (optional; omitted = all active accounts)
        - from: YYYY-MM-DD start date overriding the incremental one (optional)

    Responses:
        200 sync result(s), 400 bad account id or date, 403 cross-origin,
        429 cooldown active, 502 upstream failure
    """
    payload, status = _orchestrator().trigger_sync(request)
    return ApiResponse.ok(payload, status)


@sync_bp.route('/sync', methods=['GET'])
def sync_status():
    """
    Latest sync status of an account

    Query:
        - accountId: required
        - progress: '1' for live step progress
    """
    payload, status = _orchestrator().sync_status(request)
    return ApiResponse.ok(payload, status)
