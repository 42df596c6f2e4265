"""
Word Service - contribution, listing and deletion for the orbit

Read path:  load words -> reconcile (normalize, allocate) -> respond;
            pending position updates are written back separately.
Write path: validate -> uniqueness checks -> claim one slot -> upload
            avatar -> insert the word with its coordinate already set.

Nothing is cached between calls: every decision rebuilds occupancy from the
words currently in the store.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Sequence

from models.api.word import WordResponse
from models.domain.word import Word, normalize_term
from services.blob_store import BlobStore
from services.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    DuplicateTermError,
    NotFoundError,
    PayloadTooLargeError,
    SlotTakenError,
    StructureFullError,
    ValidationError,
    WordError,
)
from services.layout import LayerCapacity, Placement, claim_next_slot
from services.reconciler import (
    PositionUpdate,
    ReconciliationResult,
    display_order,
    normalize_positions,
    occupancy_of,
    reconcile,
)
from utils.id_generator import generate_avatar_path

logger = logging.getLogger(__name__)


@dataclass
class AvatarUpload:
    """Avatar file received with a contribution"""
    data: bytes
    content_type: str
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@contextmanager
def dependency_errors(message: str):
    """Turn unexpected store/blob failures into a DependencyError"""
    try:
        yield
    except (WordError, SlotTakenError, DuplicateTermError):
        raise
    except Exception as e:
        logger.error(f"{message}: {e}")
        raise DependencyError(message) from e


class WordService:
    """
    Orbit word operations on top of a WordRepository and a BlobStore.

    Usage:
        service = WordService(repository, blob_store, capacity=LayerCapacity(base=4))
        result = await service.listing()
        word = await service.contribute("merhaba", "ayse", token)
    """

    def __init__(
        self,
        repository,
        blob_store: BlobStore,
        capacity: LayerCapacity,
        placement: Optional[Placement] = None,
        max_term_length: int = 30,
        max_username_length: int = 30,
        max_avatar_bytes: int = 5 * 1024 * 1024,
        one_word_per_visitor: bool = True,
        reconcile_write_back: bool = True,
        claim_retries: int = 3,
    ):
        self.repository = repository
        self.blob_store = blob_store
        self.capacity = capacity
        self.placement = placement or Placement()
        self.max_term_length = max_term_length
        self.max_username_length = max_username_length
        self.max_avatar_bytes = max_avatar_bytes
        self.one_word_per_visitor = one_word_per_visitor
        self.reconcile_write_back = reconcile_write_back
        self.claim_retries = max(1, claim_retries)

    @classmethod
    def from_settings(cls, settings, repository, blob_store: BlobStore) -> 'WordService':
        return cls(
            repository=repository,
            blob_store=blob_store,
            capacity=settings.layer_capacity(),
            placement=settings.placement(),
            max_term_length=settings.max_term_length,
            max_username_length=settings.max_username_length,
            max_avatar_bytes=settings.max_avatar_bytes,
            one_word_per_visitor=settings.one_word_per_visitor,
            reconcile_write_back=settings.reconcile_write_back,
            claim_retries=settings.claim_retries,
        )

    # =========================================================================
    # READ PATH
    # =========================================================================

    async def _load_words(self) -> List[Word]:
        with dependency_errors("Could not load words"):
            return await self.repository.list_all()

    async def listing(self) -> ReconciliationResult:
        """
        Load every word and reconcile positions in memory.

        Returns:
            ReconciliationResult with words in display order and the
            position updates still to be persisted
        """
        words = await self._load_words()
        result = reconcile(words, self.capacity)
        result.words = display_order(result.words)
        return result

    async def write_back(self, pending: Sequence[PositionUpdate]) -> bool:
        """
        Persist reconciled positions. Failures are logged, never raised;
        the next listing computes and retries the same updates.
        """
        if not pending or not self.reconcile_write_back:
            return False
        try:
            count = await self.repository.upsert_positions(list(pending))
        except Exception as e:
            logger.warning(f"Position write-back of {len(pending)} words failed: {e}")
            return False
        logger.info(f"Persisted {count} reconciled positions")
        return True

    async def list_words(self) -> List[Word]:
        """Listing with write-back awaited inline"""
        result = await self.listing()
        await self.write_back(result.pending)
        return result.words

    def present(self, word: Word) -> WordResponse:
        """Attach placement geometry and the resolved avatar URL"""
        angle, radius = self.placement.place(word.layer_index, word.slot_index, self.capacity)
        return WordResponse(
            id=word.id,
            term=word.term,
            username=word.username,
            avatar_url=self.blob_store.public_url(word.avatar_path),
            client_token=word.client_token,
            created_at=word.created_at,
            layer_index=word.layer_index,
            slot_index=word.slot_index,
            angle=angle,
            radius=radius,
        )

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    def _clean_text(self, value: Optional[str], field_name: str, max_length: Optional[int]) -> str:
        value = (value or '').strip()
        if not value:
            raise ValidationError(f"Missing {field_name}")
        if max_length is not None and len(value) > max_length:
            raise ValidationError(f"{field_name} must be at most {max_length} characters")
        return value

    def _check_avatar(self, avatar: Optional[AvatarUpload]) -> Optional[AvatarUpload]:
        if avatar is None or not avatar.data:
            return None
        if avatar.size > self.max_avatar_bytes:
            limit_mb = self.max_avatar_bytes / (1024 * 1024)
            raise PayloadTooLargeError(f"Avatar must be at most {limit_mb:g} MB")
        if not (avatar.content_type or '').lower().startswith('image/'):
            raise ValidationError("Avatar must be an image")
        return avatar

    async def _discard_avatar(self, path: Optional[str]) -> None:
        if not path:
            return
        try:
            await self.blob_store.delete(path)
        except Exception as e:
            logger.warning(f"Could not remove avatar {path}: {e}")

    async def contribute(
        self,
        term: Optional[str],
        username: Optional[str],
        client_token: Optional[str],
        avatar: Optional[AvatarUpload] = None,
    ) -> Word:
        """
        Add a word to the orbit at the lowest free coordinate.

        Raises:
            ValidationError / PayloadTooLargeError: bad input
            ConflictError: duplicate term or visitor already has a word
            StructureFullError: no free slot up to the maximum layer
            DependencyError: store or blob failure
        """
        term = self._clean_text(term, "term", self.max_term_length)
        username = self._clean_text(username, "username", self.max_username_length)
        client_token = self._clean_text(client_token, "clientToken", None)
        avatar = self._check_avatar(avatar)

        words = await self._load_words()

        term_key = normalize_term(term)
        if any(w.term_key == term_key for w in words):
            raise ConflictError(f"'{term}' is already on the orbit")

        if self.one_word_per_visitor:
            with dependency_errors("Could not load words"):
                owned = await self.repository.find_by_client_token(client_token)
            if owned:
                raise ConflictError("You have already added a word")

        normalized, _ = normalize_positions(words, self.capacity)
        occupancy = occupancy_of(normalized)
        coordinate = claim_next_slot(occupancy, self.capacity)
        if coordinate is None:
            raise StructureFullError("The orbit is full")

        avatar_path = None
        if avatar is not None:
            avatar_path = generate_avatar_path(client_token, avatar.content_type)
            with dependency_errors("Avatar upload failed"):
                await self.blob_store.upload(avatar_path, avatar.data, avatar.content_type)

        try:
            return await self._insert(term, username, client_token, avatar_path, coordinate, occupancy)
        except WordError:
            await self._discard_avatar(avatar_path)
            raise

    async def _insert(self, term, username, client_token, avatar_path, coordinate, occupancy) -> Word:
        # A concurrent request may store the same coordinate first; the
        # claimed one stays marked in occupancy so the retry moves on.
        for attempt in range(1, self.claim_retries + 1):
            word = Word(
                id='',
                term=term,
                username=username,
                client_token=client_token,
                avatar_path=avatar_path,
                layer_index=coordinate[0],
                slot_index=coordinate[1],
            )
            try:
                with dependency_errors("Could not save word"):
                    return await self.repository.create(word)
            except DuplicateTermError:
                raise ConflictError(f"'{term}' is already on the orbit")
            except SlotTakenError:
                logger.info(f"Slot {coordinate} taken concurrently (attempt {attempt}/{self.claim_retries})")
                coordinate = claim_next_slot(occupancy, self.capacity)
                if coordinate is None:
                    raise StructureFullError("The orbit is full")

        raise ConflictError("The orbit is busy, please try again")

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete(self, word_id: Optional[str], client_token: Optional[str]) -> None:
        """
        Delete a word owned by client_token. Its slot becomes free for the
        next allocation since occupancy is rebuilt from live rows.

        Raises:
            ValidationError: missing id or token
            NotFoundError: unknown id
            AuthorizationError: token does not own the word
            DependencyError: store failure
        """
        if not word_id or not client_token:
            raise ValidationError("Missing id or clientToken")

        with dependency_errors("Could not load word"):
            word = await self.repository.get_by_id(word_id)
        if word is None:
            raise NotFoundError("Word not found")
        if word.client_token != client_token:
            raise AuthorizationError("You are not allowed to delete this word")

        with dependency_errors("Could not delete word"):
            deleted = await self.repository.delete(word_id)
        if not deleted:
            raise NotFoundError("Word not found")

        await self._discard_avatar(word.avatar_path)
