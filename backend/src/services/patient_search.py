"""
Patient list filtering and export projection.

Pure functions over a snapshot of records: safe to recompute on every
keystroke, no index, no state.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, TypeVar


class SearchablePatient(Protocol):
    name: str
    age: int
    parent_name: Optional[str]
    op_number: Optional[str]


PatientT = TypeVar("PatientT", bound=SearchablePatient)

EXPORT_COLUMNS = (
    "id",
    "name",
    "age",
    "parent_name",
    "op_number",
    "contact_details",
    "treatment",
    "notes",
    "image_url",
)


def matches_search(record: SearchablePatient, search: str) -> bool:
    """
    Check one record against an already lower-cased search term.

    Matches a case-insensitive substring of name, parent_name or op_number,
    or a substring of the decimal form of age.
    """
    return (
        search in (record.name or "").lower()
        or search in (record.parent_name or "").lower()
        or search in (record.op_number or "").lower()
        or search in str(record.age)
    )


def filter_patient_records(records: Sequence[PatientT], search: Optional[str]) -> List[PatientT]:
    """
    Filter records by a free-text search string, preserving order.

    An empty or whitespace-only search returns every record unchanged.
    """
    if search is None or not search.strip():
        return list(records)
    term = search.lower()
    return [record for record in records if matches_search(record, term)]


def build_export_rows(records: Sequence[Any]) -> List[Dict[str, Any]]:
    """Flat rows for spreadsheet export; absent optional values become ''."""
    rows: List[Dict[str, Any]] = []
    for record in records:
        row: Dict[str, Any] = {}
        for column in EXPORT_COLUMNS:
            value = getattr(record, column)
            row[column] = "" if value is None else value
        rows.append(row)
    return rows
