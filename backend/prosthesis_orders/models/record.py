"""
Prosthesis Orders Backend — Order Record Shape
================================================

What:  Field names of a prosthesis order document and helpers to shape it.
Why:   Documents are schemaless in Firestore; the few fields the backend
       actually relies on are named here once instead of as string literals
       scattered across services.
Who:   Used by the record service, the notification payload builder and the
       store adapter.

Record Layout (one Firestore document per order):
    id            store-assigned document ID (never stored as a field)
    paciente      patient name            (required on create)
    empresa       company                 (required on create)
    medico        physician               (required on create)
    dni           national identity number
    tubos         tube count / spec
    recibe        receiver name
    fecha_pedido  order date, list ordering (descending, undated last)
    notas         free-text notes
    ...           any other field is stored as sent
"""

from typing import Any, Dict, List, Mapping

ID_FIELD = "id"

PATIENT = "paciente"
COMPANY = "empresa"
PHYSICIAN = "medico"
NATIONAL_ID = "dni"
TUBES = "tubos"
RECEIVER = "recibe"
ORDER_DATE = "fecha_pedido"
NOTES = "notas"

REQUIRED_FIELDS = (PATIENT, COMPANY, PHYSICIAN)


def strip_identifier(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of `data` without an `id` key; the identifier is not a field."""
    return {key: value for key, value in data.items() if key != ID_FIELD}


def to_record(record_id: str, data: Mapping[str, Any] | None) -> Dict[str, Any]:
    """
    Build the API representation of a stored document.

    The document ID always wins over a stray `id` field inside the data.
    """
    record = strip_identifier(data or {})
    record[ID_FIELD] = record_id
    return record


def newest_first(records: List[Dict[str, Any]], field: str = ORDER_DATE) -> List[Dict[str, Any]]:
    """
    Sort records by `field` descending; records without it go last.

    Values are compared as text, which orders ISO dates and timestamps
    chronologically and never fails on mixed types.
    """
    dated = [r for r in records if r.get(field) not in (None, "")]
    undated = [r for r in records if r.get(field) in (None, "")]
    dated.sort(key=lambda r: str(r[field]), reverse=True)
    return dated + undated
