from flask import Blueprint, jsonify, request, current_app
from app.services.inventory import DEFAULT_INVENTORY, get_inventory, put_inventory
from app.services.rankings import InvalidInput, StoreUnavailable


inventory = Blueprint('inventory', __name__)


def _store():
    return current_app.extensions['rankings'].store


@inventory.route('', methods=['GET'])
def fetch_inventory():
    visitor_id = request.args.get('visitorId')
    if not visitor_id:
        return jsonify({'error': 'visitorId required'}), 400
    try:
        items = get_inventory(_store(), visitor_id)
    except StoreUnavailable as exc:
        # A missing inventory is harmless; fall back to an empty one
        current_app.logger.warning(f"[inventory-get] visitor={visitor_id} store unavailable: {exc}")
        items = dict(DEFAULT_INVENTORY)
    return jsonify({'inventory': items})


@inventory.route('', methods=['POST'])
def save_inventory():
    data = request.get_json(silent=True) or {}
    try:
        put_inventory(_store(), data.get('visitorId'), data.get('inventory'))
    except InvalidInput as exc:
        return jsonify({'error': str(exc), 'fields': exc.fields}), 400
    except StoreUnavailable as exc:
        current_app.logger.error(f"[inventory-put] store unavailable: {exc}")
        return jsonify({'error': 'Inventory store unavailable'}), 503
    return jsonify({'success': True})
