"""Per-visitor item inventory stored as a plain blob next to the leaderboard."""
import json

from app.services.rankings.errors import InvalidInput
from app.services.rankings.store import KeyValueStore

DEFAULT_INVENTORY = {'undo': 0, 'hold': 0, 'shuffle': 0}


def _key(visitor_id: str) -> str:
    return f"inventory:{visitor_id}"


def get_inventory(store: KeyValueStore, visitor_id) -> dict:
    if not visitor_id:
        raise InvalidInput('visitorId required', fields=['visitorId'])
    record = store.get(_key(visitor_id))
    if record is None:
        return dict(DEFAULT_INVENTORY)
    raw, _ = record
    return json.loads(raw.decode('utf-8'))


def put_inventory(store: KeyValueStore, visitor_id, inventory) -> None:
    missing = []
    if not visitor_id:
        missing.append('visitorId')
    # An empty inventory is a valid one
    if inventory is None:
        missing.append('inventory')
    if missing:
        raise InvalidInput('Missing fields', fields=missing)
    if not isinstance(inventory, dict):
        raise InvalidInput('inventory must be an object', fields=['inventory'])
    store.put(_key(visitor_id), json.dumps(inventory).encode('utf-8'))
