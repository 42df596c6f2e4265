"""
Position Reconciler - backfills orbit coordinates on read

Two phases, both pure:

1. normalize: stored coordinates that no longer fit the capacity table
   (capacity shrank, half-assigned imports, negative indices) are reset to
   unassigned, so stale claims never block a slot.
2. allocate: words without a coordinate are placed in created_at order
   (first come, first served), each claim marking the occupancy map before
   the next one runs.

The result carries the reconciled words together with the position updates
that still have to be written back. Persisting them is the caller's job, so
write-back can be retried or switched off without touching the response.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from models.domain.word import Word
from services.layout import (
    LayerCapacity,
    Occupancy,
    build_occupancy,
    claim_next_slot,
    is_valid_coordinate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionUpdate:
    """Coordinate to persist for one word (None/None clears it)"""
    word_id: str
    layer_index: Optional[int]
    slot_index: Optional[int]


@dataclass
class ReconciliationResult:
    words: List[Word]
    pending: List[PositionUpdate] = field(default_factory=list)
    unplaced: List[str] = field(default_factory=list)  # ids left without a slot

    @property
    def changed(self) -> bool:
        return bool(self.pending)


def normalize_positions(words: Iterable[Word], capacity: LayerCapacity) -> Tuple[List[Word], List[str]]:
    """
    Reset coordinates that are not valid for the capacity table.

    Two words holding the same coordinate (left behind by a lost claim
    race) keep it for the older one; the newer one is reset.

    Returns:
        (normalized copies in input order, ids whose stored position was reset)
    """
    words = list(words)
    reset = set()

    for word in words:
        has_any = word.layer_index is not None or word.slot_index is not None
        if has_any and not is_valid_coordinate(word.layer_index, word.slot_index, capacity):
            logger.warning(
                f"Word {word.id} has invalid position "
                f"({word.layer_index}, {word.slot_index}), resetting"
            )
            reset.add(word.id)

    seen = set()
    for word in _by_age(words):
        if word.id in reset or not word.is_positioned:
            continue
        if word.coordinate in seen:
            logger.warning(f"Word {word.id} shares position {word.coordinate}, resetting")
            reset.add(word.id)
        else:
            seen.add(word.coordinate)

    normalized = [w.with_position(None) if w.id in reset else w for w in words]
    return normalized, [w.id for w in words if w.id in reset]


def _by_age(words: Iterable[Word]) -> List[Word]:
    # Stable: equal timestamps keep store order, missing timestamps go last
    return sorted(words, key=lambda w: (w.created_at is None, w.created_at))


def occupancy_of(words: Iterable[Word]) -> Occupancy:
    """Occupancy map of already normalized words"""
    return build_occupancy(word.coordinate for word in words)


def backfill_order(words: Iterable[Word]) -> List[Word]:
    """
    Unassigned words in the order they receive slots.

    Oldest first; equal timestamps keep store order and words without
    created_at go last.
    """
    return _by_age(w for w in words if not w.is_positioned)


def reconcile(words: Iterable[Word], capacity: LayerCapacity) -> ReconciliationResult:
    """
    Normalize stored positions and assign a slot to every word lacking one.

    Running this on its own output produces no pending updates.
    """
    normalized, reset_ids = normalize_positions(words, capacity)
    occupancy = occupancy_of(normalized)

    assigned = {}
    unplaced = []
    for word in backfill_order(normalized):
        coordinate = claim_next_slot(occupancy, capacity)
        if coordinate is None:
            unplaced.append(word.id)
            continue
        assigned[word.id] = coordinate

    reset = set(reset_ids)
    final = []
    pending = []
    for word in normalized:
        if word.id in assigned:
            word = word.with_position(assigned[word.id])
            pending.append(PositionUpdate(word.id, word.layer_index, word.slot_index))
        elif word.id in reset:
            pending.append(PositionUpdate(word.id, None, None))
        final.append(word)

    if pending:
        logger.info(
            f"Reconciled {len(final)} words: {len(assigned)} assigned, "
            f"{len(reset_ids)} reset, {len(unplaced)} without a slot"
        )

    return ReconciliationResult(words=final, pending=pending, unplaced=unplaced)


def display_order(words: Iterable[Word]) -> List[Word]:
    """
    Order used by the listing: layer (nulls first), slot (nulls first),
    then created_at. Matches the store's ORDER BY.
    """
    def key(word: Word):
        return (
            word.layer_index is not None,
            word.layer_index if word.layer_index is not None else 0,
            word.slot_index is not None,
            word.slot_index if word.slot_index is not None else 0,
            word.created_at is None,
            word.created_at,
        )
    return sorted(words, key=key)
