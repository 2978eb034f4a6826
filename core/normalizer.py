"""
Result normalizer

Collapses each backend's raw probe payload (or the error that replaced it)
into one ``ProbeOutcome``: a connected flag plus ordered, human-readable,
string-only details.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

from utils.schemas import DatabaseType, ProbeOutcome, RawProbeResult

logger = logging.getLogger(__name__)

# Extractors return None when the payload does not have the expected shape.
Extractor = Callable[[RawProbeResult], Optional[Dict[str, str]]]

RESILIENTDB_FIELDS = (
    ("replicaNum", "Replica Number"),
    ("workerNum", "Worker Number"),
    ("transactionNum", "Transaction Number"),
    ("blockNum", "Block Number"),
    ("chainAge", "Chain Age"),
)


def stringify(value: Any) -> Optional[str]:
    """Render a JSON scalar for display; ``None`` means omit the field."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _collect(source: Mapping[str, Any], fields) -> Dict[str, str]:
    details: Dict[str, str] = {}
    for key, label in fields:
        rendered = stringify(source.get(key))
        if rendered is not None:
            details[label] = rendered
    return details


def _resilientdb_details(raw: RawProbeResult) -> Optional[Dict[str, str]]:
    payload = raw.payload
    if not isinstance(payload, list) or not payload:
        return None
    record = payload[0]
    if not isinstance(record, Mapping):
        return None
    details = _collect(record, RESILIENTDB_FIELDS)
    return details or None


def _mongodb_details(raw: RawProbeResult) -> Optional[Dict[str, str]]:
    payload = raw.payload
    if not isinstance(payload, Mapping):
        return None
    details = _collect(
        raw.config,
        (("database", "Database"), ("collection", "Collection")),
    )
    details["Collection Exists"] = "Yes" if payload.get("collectionExists") else "No"
    return details


_EXTRACTORS: Dict[DatabaseType, Extractor] = {
    DatabaseType.RESILIENTDB: _resilientdb_details,
    DatabaseType.MONGODB: _mongodb_details,
}


def register_extractor(db_type: DatabaseType, extractor: Extractor) -> None:
    """Add (or replace) the detail extractor for a backend."""
    _EXTRACTORS[db_type] = extractor


def normalize(
    db_type: DatabaseType,
    raw: Union[RawProbeResult, BaseException],
) -> ProbeOutcome:
    """
    Map a probe result to a ``ProbeOutcome``.

    Errors, unknown backends and payloads missing the expected record all
    produce a disconnected outcome with no details.
    """
    if isinstance(raw, BaseException):
        return ProbeOutcome(connected=False)

    extractor = _EXTRACTORS.get(db_type)
    if extractor is None:
        logger.warning("No result extractor registered for %s", db_type)
        return ProbeOutcome(connected=False)

    details = extractor(raw)
    if details is None:
        logger.info("%s answered with an unexpected payload shape", db_type.value)
        return ProbeOutcome(connected=False)
    return ProbeOutcome(connected=True, details=details)
