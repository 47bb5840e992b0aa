"""Prize list CSV import/export.

The CSV has a fixed seven column header::

    id,order,prizeName,itemName,imagePath,selected,memo

Rows are validated one by one; a bad row becomes a skip record and never
aborts the import. Only a header mismatch fails the whole parse.

Input is split into physical lines before quote-aware tokenizing, so a
quoted field cannot carry an embedded newline.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from .errors import InvalidCsvHeaderError
from .models import CsvParseResult, Prize, SkipRecord, normalize_prize_order

logger = logging.getLogger(__name__)

PRIZE_CSV_HEADER = ("id", "order", "prizeName", "itemName", "imagePath", "selected", "memo")

_BOM = "\ufeff"
_LINE_BREAK = re.compile(r"\r?\n")
_LEADING_INT = re.compile(r"^[+-]?[0-9]+")
_NEEDS_QUOTE = re.compile(r'[",\n]')
_TRUTHY = {"true", "1", "yes"}


class SkipReason:
    COLUMN_MISMATCH = "column-mismatch"
    MISSING_REQUIRED = "missing-required"
    DUPLICATE_ID = "duplicate-id"
    INVALID_ORDER = "invalid-order"


def split_csv_line(line: str) -> List[str]:
    """Split one CSV line on commas outside double quotes.

    ``""`` inside a quoted field is a literal quote; every other ``"``
    toggles the quoted state and is dropped.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current))
    return fields


def parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def parse_order(value: str) -> Optional[int]:
    """Parse the leading integer of ``value``; None when there is none."""
    match = _LEADING_INT.match(value.strip())
    if match is None:
        return None
    return int(match.group(0))


def _nullable(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def parse_prizes_csv(text: str) -> CsvParseResult:
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    lines = [line.strip() for line in _LINE_BREAK.split(text)]
    lines = [line for line in lines if line]
    if not lines:
        return CsvParseResult()

    header = [value.strip() for value in split_csv_line(lines[0])]
    if tuple(header) != PRIZE_CSV_HEADER:
        logger.warning("Rejected CSV with header %s", header)
        raise InvalidCsvHeaderError(header)

    accepted: List[Prize] = []
    skipped: List[SkipRecord] = []
    seen_ids = set()

    for line in lines[1:]:
        values = [value.strip() for value in split_csv_line(line)]
        if len(values) != len(PRIZE_CSV_HEADER):
            skipped.append(SkipRecord(id=values[0] if values else "", reason=SkipReason.COLUMN_MISMATCH))
            continue

        prize_id, order_value, prize_name, item_name, image_path, selected, memo = values
        if not prize_id or not prize_name or not item_name:
            skipped.append(SkipRecord(id=prize_id, reason=SkipReason.MISSING_REQUIRED))
            continue
        if prize_id in seen_ids:
            skipped.append(SkipRecord(id=prize_id, reason=SkipReason.DUPLICATE_ID))
            continue
        order = parse_order(order_value)
        if order is None:
            skipped.append(SkipRecord(id=prize_id, reason=SkipReason.INVALID_ORDER))
            continue

        accepted.append(
            Prize(
                id=prize_id,
                order=order,
                prize_name=prize_name,
                item_name=item_name,
                image_path=_nullable(image_path),
                selected=parse_bool(selected),
                memo=_nullable(memo),
            )
        )
        seen_ids.add(prize_id)

    if skipped:
        logger.info("CSV parse: %d accepted, %d skipped", len(accepted), len(skipped))
    return CsvParseResult(prizes=normalize_prize_order(accepted), skipped=skipped)


def escape_csv_field(value: Optional[str]) -> str:
    if value is None:
        return ""
    escaped = value.replace('"', '""')
    if _NEEDS_QUOTE.search(value):
        return f'"{escaped}"'
    return escaped


def generate_prizes_csv(prizes: Iterable[Prize]) -> str:
    rows = [",".join(PRIZE_CSV_HEADER)]
    for prize in sorted(prizes, key=lambda p: p.order):
        fields = [
            prize.id,
            str(prize.order),
            prize.prize_name,
            prize.item_name,
            prize.image_path or "",
            "true" if prize.selected else "false",
            prize.memo or "",
        ]
        rows.append(",".join(escape_csv_field(field) for field in fields))
    return "\n".join(rows)
