"""
Prosthesis Orders Backend — Record Service (Business Rules)
=============================================================

What:  The few business rules of the order collection: required fields on
       create, the delete PIN gate and bulk-update input checks.
Why:   Keeps route handlers thin (HTTP only) and the rules testable without
       HTTP or Firestore.
How:   Stateless service; the store is passed in on every call, exactly like
       the request-scoped dependencies the routes receive.
Who:   Called by routes/records.py.

Validation Scope:
    Presence checks only. Values are stored as sent: no type coercion, no
    sanitisation, no schema. Updates are never validated.
"""

import hmac
import logging
from typing import Any, Dict, List, Mapping

from prosthesis_orders.exceptions import ForbiddenError, ValidationError
from prosthesis_orders.models.record import REQUIRED_FIELDS, strip_identifier, to_record
from prosthesis_orders.store import RecordStore

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Faltan datos requeridos (paciente, empresa, medico)"
WRONG_PIN_MESSAGE = "PIN incorrecto. Operación denegada."
IDS_REQUIRED_MESSAGE = "Se requiere un arreglo de IDs"
UPDATE_DATA_REQUIRED_MESSAGE = "Se requiere un objeto updateData con los campos a actualizar"


def validate_required_fields(data: Mapping[str, Any]) -> Mapping[str, Any]:
    """
    Check that paciente, empresa and medico are present and non-empty.

    Empty means falsy: missing, None, "", 0, False or an empty container.

    Returns:
        `data`, unchanged.

    Raises:
        ValidationError: at least one required field is missing or empty.
    """
    missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise ValidationError(
            message=MISSING_FIELDS_MESSAGE,
            context={"missing_fields": missing},
        )
    return data


def check_delete_pin(supplied: Any, expected: str) -> None:
    """
    Exact match of the caller's PIN against the configured one.

    Non-string PINs (e.g. a JSON number) never match. The comparison is
    constant-time but still an exact string equality.

    Raises:
        ForbiddenError: PIN missing or different.
    """
    if not isinstance(supplied, str) or not hmac.compare_digest(
        supplied.encode("utf-8"), expected.encode("utf-8")
    ):
        raise ForbiddenError(message=WRONG_PIN_MESSAGE)


def validate_bulk_update(ids: Any, update_data: Any) -> List[str]:
    """
    Check the bulk-update body before anything is written.

    Returns:
        The identifier list.

    Raises:
        ValidationError: `ids` absent, not a list, or empty; `updateData`
            not a non-empty object.
    """
    if not isinstance(ids, list) or len(ids) == 0:
        raise ValidationError(message=IDS_REQUIRED_MESSAGE, field="ids")
    if not all(isinstance(record_id, str) and record_id for record_id in ids):
        raise ValidationError(message=IDS_REQUIRED_MESSAGE, field="ids")
    if not isinstance(update_data, dict) or not strip_identifier(update_data):
        raise ValidationError(message=UPDATE_DATA_REQUIRED_MESSAGE, field="updateData")
    return ids


class RecordService:
    """
    Operations over the order collection.

    Error Handling Strategy:
        Input problems raise ValidationError / ForbiddenError before the store
        is touched. Store failures propagate as StoreError from the store.
    """

    async def list_records(self, store: RecordStore) -> List[Dict[str, Any]]:
        return await store.list_records()

    async def create_record(self, store: RecordStore, data: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate and persist a new order.

        Returns:
            The stored fields plus the store-assigned `id`.
        """
        validate_required_fields(data)
        fields = strip_identifier(data)
        record_id = await store.create_record(fields)
        logger.info("Record %s created", record_id)
        return to_record(record_id, fields)

    async def update_record(
        self, store: RecordStore, record_id: str, data: Mapping[str, Any]
    ) -> None:
        fields = strip_identifier(data)
        await store.update_record(record_id, fields)
        logger.info("Record %s updated (%d fields)", record_id, len(fields))

    async def delete_record(
        self, store: RecordStore, record_id: str, pin: Any, expected_pin: str
    ) -> None:
        try:
            check_delete_pin(pin, expected_pin)
        except ForbiddenError:
            logger.warning("Rejected delete of record %s: wrong PIN", record_id)
            raise
        await store.delete_record(record_id)
        logger.info("Record %s deleted", record_id)

    async def bulk_update(self, store: RecordStore, ids: Any, update_data: Any) -> int:
        """
        Apply one partial field set to every listed record, atomically.

        Returns:
            Number of records written.
        """
        record_ids = validate_bulk_update(ids, update_data)
        count = await store.bulk_update(record_ids, strip_identifier(update_data))
        logger.info("Bulk update applied to %d records", count)
        return count


record_service = RecordService()
