"""Record to payload transforms for the target API."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence

Payload = Dict[str, Any]


def wrap_record(record: Mapping[str, Any]) -> Payload:
    """Wrap one record in the API's ``dataList`` envelope."""
    return {"dataList": [{"data": dict(record)}]}


def wrap_chunk(chunk: Sequence[Mapping[str, Any]]) -> Payload:
    """Wrap a chunk of records for a bulk endpoint."""
    return {"dataList": [{"data": dict(record)} for record in chunk]}


def as_is(record: Mapping[str, Any]) -> Payload:
    """Send the record unchanged."""
    return dict(record)


@dataclass(frozen=True)
class DetailRecord:
    """A detail row whose header reference must be resolved before posting.

    Attributes:
        header_ref: Business key of the header row, as found in the CSV
        fields: All CSV fields of the detail row
    """

    header_ref: str
    fields: Dict[str, Any]

    def with_header_key(self, header_key: Any) -> Dict[str, Any]:
        """Return the fields with ``headerKey`` replaced by the resolved key."""
        return {**self.fields, "headerKey": header_key}


def to_detail_record(record: Mapping[str, Any], ref_field: str = "headerKey") -> DetailRecord:
    """Build a DetailRecord from a CSV row.

    Raises:
        ValueError: If the row has no header reference
    """
    header_ref = record.get(ref_field)
    if header_ref is None or not str(header_ref).strip():
        raise ValueError(f"Record has no {ref_field} to resolve")
    return DetailRecord(header_ref=str(header_ref).strip(), fields=dict(record))
