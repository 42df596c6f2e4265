"""
Word Repository - PostgreSQL storage for orbit words

Storage: PostgreSQL (words table, see migrations/001_create_words.sql)
"""
import logging
from typing import Optional, List, Sequence
import asyncpg

from models.domain.word import Word
from services.errors import SlotTakenError, DuplicateTermError

logger = logging.getLogger(__name__)

# Unique indexes declared by the migration
POSITION_INDEX = 'words_live_position_idx'
TERM_INDEX = 'words_term_key_idx'

WORD_COLUMNS = """
    id, term, username, avatar_path, client_token,
    created_at, layer_index, slot_index
"""


def _row_to_word(row) -> Word:
    return Word(
        id=str(row['id']),
        term=row['term'],
        username=row['username'],
        avatar_path=row['avatar_path'],
        client_token=row['client_token'],
        created_at=row['created_at'],
        layer_index=row['layer_index'],
        slot_index=row['slot_index'],
    )


class WordRepository:
    """
    Repository for Word domain model

    The words table is the only source of truth for positions; occupancy is
    always derived from the rows returned by list_all().
    """

    def __init__(self, db_pool: asyncpg.Pool):
        self.db_pool = db_pool

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def list_all(self) -> List[Word]:
        """
        Get every live word.

        Returns:
            Words ordered by layer (nulls first), slot (nulls first), created_at
        """
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT {WORD_COLUMNS}
                FROM words
                ORDER BY layer_index ASC NULLS FIRST,
                         slot_index ASC NULLS FIRST,
                         created_at ASC
            """)
            return [_row_to_word(row) for row in rows]

    async def get_by_id(self, word_id: str) -> Optional[Word]:
        """
        Retrieve word by ID.

        Args:
            word_id: Word ID (wd_xxxxxxxx or legacy UUID)

        Returns:
            Word model or None
        """
        async with self.db_pool.acquire() as conn:
            row = await conn.fetchrow(f"""
                SELECT {WORD_COLUMNS}
                FROM words
                WHERE id = $1
            """, word_id)

            if not row:
                return None

            return _row_to_word(row)

    async def find_by_client_token(self, client_token: str) -> List[Word]:
        """Words owned by a browser token, oldest first"""
        async with self.db_pool.acquire() as conn:
            rows = await conn.fetch(f"""
                SELECT {WORD_COLUMNS}
                FROM words
                WHERE client_token = $1
                ORDER BY created_at ASC
            """, client_token)
            return [_row_to_word(row) for row in rows]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create(self, word: Word) -> Word:
        """
        Insert a new word.

        Returns:
            The stored word (created_at filled in by the database)

        Raises:
            SlotTakenError: coordinate already held by another live word
            DuplicateTermError: term already exists (same term_key)
        """
        async with self.db_pool.acquire() as conn:
            try:
                row = await conn.fetchrow(f"""
                    INSERT INTO words (
                        id, term, term_key, username, avatar_path, client_token,
                        layer_index, slot_index
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                    RETURNING {WORD_COLUMNS}
                """,
                    word.id,
                    word.term,
                    word.term_key,
                    word.username,
                    word.avatar_path,
                    word.client_token,
                    word.layer_index,
                    word.slot_index,
                )
            except asyncpg.exceptions.UniqueViolationError as e:
                if e.constraint_name == POSITION_INDEX:
                    raise SlotTakenError(str(word.coordinate)) from e
                if e.constraint_name == TERM_INDEX:
                    raise DuplicateTermError(word.term) from e
                raise

        logger.info(f"Created word {word.id} at {word.coordinate}")
        return _row_to_word(row)

    async def delete(self, word_id: str) -> bool:
        """
        Delete a word.

        Returns:
            True if a row was removed
        """
        async with self.db_pool.acquire() as conn:
            result = await conn.execute("""
                DELETE FROM words WHERE id = $1
            """, word_id)

        deleted = result.endswith(' 1')
        if deleted:
            logger.info(f"Deleted word {word_id}")
        return deleted

    async def upsert_positions(self, updates: Sequence) -> int:
        """
        Persist reconciled coordinates, keyed by word id.

        Args:
            updates: PositionUpdate items (word_id, layer_index, slot_index);
                     None coordinates clear the stored position

        Returns:
            Number of updates sent
        """
        if not updates:
            return 0

        # Clear stale positions before claiming new ones
        ordered = sorted(updates, key=lambda u: u.layer_index is not None)

        async with self.db_pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany("""
                    UPDATE words
                    SET layer_index = $2, slot_index = $3
                    WHERE id = $1
                """, [(u.word_id, u.layer_index, u.slot_index) for u in ordered])

        return len(ordered)
