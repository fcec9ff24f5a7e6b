"""
Seeds a development database with supplier references and open purchase
requests from debug/data/procurement.json.

Seeding is idempotent: the debug requests carry explicit ids, and if any of
them already exists the whole file is skipped. Any failure rolls back and is
re-raised so a half-seeded database never goes unnoticed.
"""

import json
from pathlib import Path

from app import db
from app.logger import get_logger

logger = get_logger("procurement.debug_data_manager")

DEBUG_DATA_DIR = Path(__file__).parent / 'data'


def insert_debug_data(enabled=True):
    """
    Returns:
        dict: {'procurement': {'status': ...}} summary, empty when disabled
    """
    if not enabled:
        logger.info("Debug data disabled")
        return {}

    seed = load_seed_file('procurement')
    if seed is None:
        logger.info("No procurement seed file, nothing to insert")
        return {'procurement': {'status': 'skipped', 'reason': 'file_not_found'}}

    section = seed.get('Procurement', {})
    if seed_already_loaded(section):
        logger.info("Procurement seed already loaded")
        return {'procurement': {'status': 'skipped', 'reason': 'data_present'}}

    from app.data.procurement import PurchaseRequest, SupplierReference

    try:
        references = SupplierReference.bulk_create_from_dicts(section.get('SupplierReferences', []), commit=False)
        requests = PurchaseRequest.bulk_create_from_dicts(section.get('PurchaseRequests', []), commit=False)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Procurement seed failed, rolled back: {e}")
        raise

    logger.info(f"Seeded {len(references)} supplier references and {len(requests)} purchase requests")
    return {'procurement': {'status': 'inserted', 'references': len(references), 'requests': len(requests)}}


def load_seed_file(name):
    """Parsed JSON of debug/data/<name>.json, or None if the file is absent"""
    path = DEBUG_DATA_DIR / f'{name}.json'
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        logger.error(f"Seed file {path} is not valid JSON: {e}")
        raise
    logger.debug(f"Loaded seed file {path}")
    return data


def seed_already_loaded(section):
    from app.data.procurement import PurchaseRequest

    ids = [item['id'] for item in section.get('PurchaseRequests', []) if 'id' in item]
    if not ids:
        return False
    return db.session.query(PurchaseRequest.id).filter(PurchaseRequest.id.in_(ids)).first() is not None
