"""
Pytest fixtures for the word orbit.

The record store is replaced by an in-memory FakeWordRepository that mimics
the words table (ordering, unique position and term indexes). The blob store
is the real BlobStore talking to an httpx.MockTransport.
"""

import httpx
import pytest

from fakes import FakeWordRepository, StorageRecorder
from services.blob_store import BlobStore
from services.layout import LayerCapacity, Placement
from services.word_service import WordService

STORAGE_URL = "https://storage.test/storage/v1"


@pytest.fixture
def capacity():
    return LayerCapacity(base=4)


@pytest.fixture
def storage():
    return StorageRecorder()


@pytest.fixture
def blob_store(storage):
    return BlobStore(STORAGE_URL, "service-key", bucket="avatars",
                     transport=httpx.MockTransport(storage))


@pytest.fixture
def repo():
    return FakeWordRepository()


@pytest.fixture
def service(repo, blob_store, capacity):
    return WordService(repo, blob_store, capacity=capacity, placement=Placement())
