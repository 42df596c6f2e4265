"""
Word domain model
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple

from utils.id_generator import generate_word_id


@dataclass
class Word:
    """
    Word domain model - storage-agnostic representation

    Storage: PostgreSQL (words table)

    One visitor contribution placed on the orbit. layer_index and slot_index
    are either both set or both None (position not assigned yet).

    ID format: wd_xxxxxxxx (11 chars), or a UUID for imported rows
    """
    id: str
    term: str
    username: str
    client_token: str

    # Avatar blob path in storage (or an absolute URL on imported rows)
    avatar_path: Optional[str] = None

    # Timestamps
    created_at: Optional[datetime] = None

    # Orbit position
    layer_index: Optional[int] = None
    slot_index: Optional[int] = None

    def __post_init__(self):
        """Generate ID for new words; stored ids are kept as they are"""
        if not self.id:
            self.id = generate_word_id()

    @property
    def coordinate(self) -> Optional[Tuple[int, int]]:
        """(layer_index, slot_index), None unless both are set"""
        if self.layer_index is None or self.slot_index is None:
            return None
        return (self.layer_index, self.slot_index)

    @property
    def is_positioned(self) -> bool:
        return self.coordinate is not None

    @property
    def term_key(self) -> str:
        """Case-folded term used for duplicate checks"""
        return normalize_term(self.term)

    def with_position(self, coordinate: Optional[Tuple[int, int]]) -> 'Word':
        """Copy of this word at the given coordinate (None clears it)"""
        if coordinate is None:
            return replace(self, layer_index=None, slot_index=None)
        layer_index, slot_index = coordinate
        return replace(self, layer_index=layer_index, slot_index=slot_index)


# Turkish dotted/dotless I pairs: I <-> ı, İ <-> i
TURKISH_UPPER_I = str.maketrans({'I': 'ı', 'İ': 'i'})


def normalize_term(term: str) -> str:
    """
    Case-folded key for duplicate checks, with Turkish casing for I.

    "Merhaba" and "merhaba" collide, so do "KIŞ" and "kış", and "İzmir"
    and "izmir".
    """
    return (term or '').strip().translate(TURKISH_UPPER_I).casefold()
