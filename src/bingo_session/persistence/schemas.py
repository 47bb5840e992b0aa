"""JSON Schemas for the documents kept in the versioned store.

The store hands back untyped JSON; these schemas decide whether a stored
document is usable before it is turned into a model. A document that fails
validation is treated by callers as if it were absent.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from jsonschema import Draft202012Validator

logger = logging.getLogger(__name__)

_TIMESTAMP = {"type": "string", "minLength": 1}
_NULLABLE_STRING = {"type": ["string", "null"]}

DRAW_HISTORY_ENTRY_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["number", "sequence", "drawnAt"],
    "properties": {
        "number": {"type": "integer", "minimum": 1},
        "sequence": {"type": "integer", "minimum": 1},
        "drawnAt": _TIMESTAMP,
    },
}

GAME_STATE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["currentNumber", "drawHistory", "isDrawing", "createdAt", "updatedAt"],
    "properties": {
        "currentNumber": {"type": ["integer", "null"]},
        "drawHistory": {"type": "array", "items": DRAW_HISTORY_ENTRY_SCHEMA},
        "isDrawing": {"type": "boolean"},
        "createdAt": _TIMESTAMP,
        "updatedAt": _TIMESTAMP,
    },
}

PRIZE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["id", "order", "prizeName", "itemName", "selected"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "order": {"type": "integer", "minimum": 0},
        "prizeName": {"type": "string"},
        "itemName": {"type": "string"},
        "imagePath": _NULLABLE_STRING,
        "selected": {"type": "boolean"},
        "memo": _NULLABLE_STRING,
    },
}

# Entries are checked one by one against PRIZE_SCHEMA so a bad entry only
# drops itself.
PRIZE_LIST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
}

BGM_PREFERENCE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["enabled", "volume", "updatedAt"],
    "properties": {
        "enabled": {"type": "boolean"},
        "volume": {"type": "number", "minimum": 0, "maximum": 1},
        "updatedAt": _TIMESTAMP,
    },
}


def is_valid(document: Any, schema: Mapping[str, Any], name: str = "document") -> bool:
    """Validate ``document`` against ``schema``, logging every violation."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.path))
    for err in errors:
        where = ".".join(str(p) for p in err.absolute_path) or "$"
        logger.warning("Invalid stored %s at %s: %s", name, where, err.message)
    return not errors
