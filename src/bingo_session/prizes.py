from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from .clock import Clock, utc_now_iso
from .csv_codec import generate_prizes_csv, parse_prizes_csv
from .errors import InvalidReorderError, PrizeNotFoundError
from .images import ImageStore, extract_image_id, is_image_path
from .models import CsvImportResult, Prize, normalize_prize_order
from .persistence.documents import read_prizes, write_prizes
from .persistence.store import VersionedStore

logger = logging.getLogger(__name__)


def new_prize_id() -> str:
    return str(uuid.uuid4())


class PrizeService:
    """Prize list operations: toggle, reorder, add/remove, CSV import/export.

    Every operation reads the stored list, builds the next list and writes
    it back in full. Returned lists are fresh copies sorted by ``order``.
    """

    def __init__(
        self,
        store: VersionedStore,
        images: Optional[ImageStore] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._images = images
        self._clock = clock or utc_now_iso

    def get_prizes(self) -> List[Prize]:
        return sorted(read_prizes(self._store), key=lambda p: p.order)

    def save_prizes(self, prizes: Iterable[Prize]) -> List[Prize]:
        normalized = normalize_prize_order(prizes)
        write_prizes(self._store, normalized)
        return normalized

    def has_selection(self) -> bool:
        return any(prize.selected for prize in read_prizes(self._store))

    def toggle_prize(self, prize_id: str, selected: Optional[bool] = None) -> List[Prize]:
        """Set ``selected`` on one prize, or flip it when ``selected`` is None."""
        prizes = self.get_prizes()
        index = self._index_of(prizes, prize_id)
        current = prizes[index]
        desired = (not current.selected) if selected is None else bool(selected)
        prizes[index] = replace(current, selected=desired)
        write_prizes(self._store, prizes)
        logger.info("Prize %s selected=%s", prize_id, desired)
        return prizes

    def reorder_prizes(self, ordered_ids: Sequence[str]) -> List[Prize]:
        prizes = self.get_prizes()
        by_id = {prize.id: prize for prize in prizes}
        if len(ordered_ids) != len(prizes) or set(ordered_ids) != set(by_id):
            raise InvalidReorderError("Reorder ids must be a permutation of the current prize ids")
        reordered = [replace(by_id[prize_id], order=index) for index, prize_id in enumerate(ordered_ids)]
        write_prizes(self._store, reordered)
        return reordered

    def add_prize(self, prize_name: str, item_name: str, memo: Optional[str] = None) -> Prize:
        prizes = self.get_prizes()
        prize = Prize(
            id=new_prize_id(),
            order=len(prizes),
            prize_name=prize_name,
            item_name=item_name,
            memo=memo or None,
        )
        self.save_prizes(prizes + [prize])
        logger.info("Added prize %s (%s)", prize.id, prize_name)
        return prize

    def remove_prize(self, prize_id: str) -> List[Prize]:
        prizes = self.get_prizes()
        removed = prizes.pop(self._index_of(prizes, prize_id))
        remaining = self.save_prizes(prizes)
        if self._images is not None and is_image_path(removed.image_path):
            self._images.delete(extract_image_id(removed.image_path))
        logger.info("Removed prize %s", prize_id)
        return remaining

    def delete_all_prizes(self) -> List[Prize]:
        write_prizes(self._store, [])
        if self._images is not None:
            self._images.clear()
        logger.info("Deleted all prizes")
        return []

    def import_prizes(self, text: str, source_name: str) -> CsvImportResult:
        """Replace the stored list with the prizes parsed from ``text``.

        A header mismatch raises InvalidCsvHeaderError and writes nothing.
        """
        parsed = parse_prizes_csv(text)
        write_prizes(self._store, parsed.prizes)
        result = CsvImportResult(
            source_name=source_name,
            added_count=len(parsed.prizes),
            skipped=list(parsed.skipped),
            processed_at=self._clock(),
        )
        logger.info(
            "Imported %d prizes from %s (%d skipped)",
            result.added_count,
            source_name,
            len(result.skipped),
        )
        return result

    def export_prizes(self) -> str:
        return generate_prizes_csv(self.get_prizes())

    @staticmethod
    def _index_of(prizes: List[Prize], prize_id: str) -> int:
        for index, prize in enumerate(prizes):
            if prize.id == prize_id:
                return index
        raise PrizeNotFoundError(prize_id)
