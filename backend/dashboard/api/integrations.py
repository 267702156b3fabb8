"""
Integrations & connected accounts API
"""
from flask import Blueprint, current_app, request

from ..extensions import db
from ..middleware.csrf import csrf_protect
from ..models import Account
from ..security.validation import (
    validate_boolean,
    validate_credentials,
    validate_integration_id,
    validate_label,
)
from ..services.sync.orchestrator import parse_json_body
from ..utils.crypto import CredentialCryptoError, get_crypto
from ..utils.logger import get_logger
from ..utils.responses import ApiResponse

integrations_bp = Blueprint('integrations', __name__)
logger = get_logger('integrations_api')


def _registry():
    registry = current_app.extensions['integration_registry']
    registry.load_all()
    return registry


@integrations_bp.route('/integrations', methods=['GET'])
def list_integrations():
    """
    All available integrations with their connected accounts
    """
    registry = _registry()
    accounts = Account.query.order_by(Account.created_at).all()

    result = []
    for integration in registry.all():
        entry = integration.to_dict()
        entry['accounts'] = [a.to_dict() for a in accounts if a.integration_id == integration.id]
        result.append(entry)

    return ApiResponse.ok(result)


@integrations_bp.route('/integrations', methods=['POST'])
@csrf_protect
def connect_account():
    """
    Connect a new account

    Request Body:
        - integrationId: e.g. 'stripe'
        - label: display name
        - credentials: {key: value} as declared by the integration
    """
    registry = _registry()

    body = request.get_json(force=True, silent=True)
    if not isinstance(body, dict):
        return ApiResponse.validation_error('Invalid JSON body')

    integration_id = body.get('integrationId')
    label = body.get('label')
    credentials = body.get('credentials')

    for error in (
        validate_integration_id(integration_id),
        validate_label(label),
        validate_credentials(credentials),
    ):
        if error:
            return ApiResponse.validation_error(error.message, {'field': error.field})

    integration = registry.get(integration_id)
    if integration is None:
        return ApiResponse.not_found(f'Integration "{integration_id}" not found')

    missing = [f.key for f in integration.credentials if f.required and not credentials.get(f.key)]
    if missing:
        return ApiResponse.validation_error(f"Missing credentials: {', '.join(missing)}")

    if not integration.fetcher.validate_credentials(credentials):
        return ApiResponse.unauthorized('Invalid credentials. Please check your API key and try again.')

    try:
        encrypted = get_crypto().encrypt_credentials(credentials)
    except CredentialCryptoError as e:
        logger.error(f"Cannot store credentials: {e}")
        return ApiResponse.error('Credential encryption is not configured', 503, 'ENCRYPTION_UNAVAILABLE')

    account = Account(integration_id=integration_id, label=label.strip(), credentials=encrypted)
    try:
        db.session.add(account)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to store account: {type(e).__name__}")
        return ApiResponse.server_error('Failed to store account')

    logger.info(f"Connected {integration_id} account {account.id}")
    return ApiResponse.created(account.to_dict())


@integrations_bp.route('/integrations/<account_id>', methods=['PATCH'])
@csrf_protect
def update_account(account_id):
    """
    Rename or (de)activate an account

    Request Body:
        - label: new display name (optional)
        - isActive: bool (optional)
    """
    account = db.session.get(Account, account_id)
    if account is None:
        return ApiResponse.not_found('Account not found')

    body = parse_json_body(request)

    if 'label' in body:
        error = validate_label(body['label'])
        if error:
            return ApiResponse.validation_error(error.message, {'field': error.field})
        account.label = body['label'].strip()

    if 'isActive' in body:
        error = validate_boolean('isActive', body['isActive'])
        if error:
            return ApiResponse.validation_error(error.message, {'field': error.field})
        account.is_active = body['isActive']

    db.session.commit()
    return ApiResponse.ok(account.to_dict())


@integrations_bp.route('/integrations/<account_id>', methods=['DELETE'])
@csrf_protect
def delete_account(account_id):
    """Disconnect an account and drop its sync history"""
    account = db.session.get(Account, account_id)
    if account is None:
        return ApiResponse.not_found('Account not found')

    try:
        db.session.delete(account)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to delete account {account_id}: {type(e).__name__}")
        return ApiResponse.server_error('Failed to delete account')

    logger.info(f"Deleted account {account_id}")
    return ApiResponse.ok({'deleted': True})
