"""Tests for storage providers and the JSON storage adapter."""

import pytest

from text_image_prompt_tools.errors import StorageQuotaExceededError
from text_image_prompt_tools.storage import JsonFileStorageProvider, MemoryStorageProvider, StorageAdapter


class TestMemoryStorage:

    def test_round_trip_and_remove(self):
        provider = MemoryStorageProvider()
        provider.set_item("k", "v")
        assert provider.get_item("k") == "v"
        provider.remove_item("k")
        assert provider.get_item("k") is None

    def test_quota_counts_other_keys(self):
        provider = MemoryStorageProvider(quota_bytes=10)
        provider.set_item("a", "12345")
        with pytest.raises(StorageQuotaExceededError):
            provider.set_item("b", "123456")
        provider.set_item("a", "1234567890")


class TestJsonFileStorage:

    def test_persists_across_instances(self, tmp_path):
        JsonFileStorageProvider(tmp_path).set_item("text-image-prompt-tools:models", "[]")

        assert JsonFileStorageProvider(tmp_path).get_item("text-image-prompt-tools:models") == "[]"
        assert (tmp_path / "text-image-prompt-tools_models.json").exists()

    def test_missing_key(self, tmp_path):
        assert JsonFileStorageProvider(tmp_path / "nowhere").get_item("k") is None

    def test_clear(self, tmp_path):
        provider = JsonFileStorageProvider(tmp_path)
        provider.set_item("a", "1")
        provider.set_item("b", "2")
        provider.clear()
        assert provider.get_item("a") is None and provider.get_item("b") is None

    def test_quota(self, tmp_path):
        provider = JsonFileStorageProvider(tmp_path, quota_bytes=4)
        with pytest.raises(StorageQuotaExceededError):
            provider.set_item("k", "12345")


class TestStorageAdapter:

    def test_json_values_keep_unicode(self):
        provider = MemoryStorageProvider()
        adapter = StorageAdapter(provider)
        adapter.set_data("k", {"prompt": "雨中的猫"})

        assert "雨中的猫" in provider.get_item("k")
        assert adapter.get_data("k") == {"prompt": "雨中的猫"}

    def test_default_for_missing_and_corrupt(self):
        provider = MemoryStorageProvider()
        adapter = StorageAdapter(provider)
        assert adapter.get_data("missing", []) == []

        provider.set_item("bad", "{not json")
        assert adapter.get_data("bad", {}) == {}

    def test_update_returns_written_value(self, storage):
        storage.set_data("n", 1)
        assert storage.update_data("n", lambda v: v + 1) == 2
        assert storage.get_data("n") == 2
