"""草稿存储与自动保存测试。"""

import asyncio
import json
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import pytest

from storefront.core.error_handler import DraftStoreError
from storefront.modules.drafts.autosave import DraftAutosaver
from storefront.modules.drafts.store import (
    DraftStore,
    JsonFileBackend,
    MemoryBackend,
    create_draft_store,
)
from storefront.modules.listing.models import ImageAngle, ProductDraft, StagedImage


class TestDraftStore:
    """草稿读写测试"""

    def test_load_missing_returns_none(self, draft_store):
        assert draft_store.load("product") is None
        assert draft_store.load_previews("product") is None

    def test_save_and_load_draft(self, draft_store, valid_draft):
        valid_draft.specifications = {"Grade": "42.5"}
        draft_store.save("product", valid_draft)

        loaded = draft_store.load("product")
        assert loaded == valid_draft
        assert loaded is not valid_draft

    def test_decimal_values_saved_as_text(self, draft_store):
        draft_store.save("product", ProductDraft(name="Cement", price=Decimal("8500"), weight_kg=Decimal("50.0")))

        loaded = draft_store.load("product")
        assert loaded.price == "8500"
        assert loaded.weight_kg == "50.0"

    def test_keys_are_scoped_by_kind(self, draft_store, memory_backend):
        draft_store.save("product", ProductDraft(name="A"))
        draft_store.save("service", ProductDraft(name="B"))

        assert set(memory_backend.keys()) == {"product_draft", "service_draft"}
        assert draft_store.load("service").name == "B"

    def test_corrupt_draft_is_treated_as_absent(self, draft_store, memory_backend):
        memory_backend.set("product_draft", "{not json")
        assert draft_store.load("product") is None

        memory_backend.set("product_draft", "[1, 2, 3]")
        assert draft_store.load("product") is None

    def test_unknown_draft_keys_are_ignored(self, draft_store, memory_backend):
        memory_backend.set("product_draft", json.dumps({"name": "Cement", "legacy_field": 1}))
        assert draft_store.load("product").name == "Cement"

    def test_clear_only_touches_draft(self, draft_store, memory_backend):
        draft_store.save("product", ProductDraft(name="A"))
        draft_store.save_previews("product", [StagedImage(url="https://cdn.test/a.jpg")])

        draft_store.clear("product")

        assert draft_store.load("product") is None
        assert draft_store.load_previews("product") is not None

    def test_discard_removes_both_entries(self, draft_store, memory_backend):
        draft_store.save("product", ProductDraft(name="A"))
        draft_store.save_previews("product", [StagedImage(url="https://cdn.test/a.jpg")])

        draft_store.discard("product")

        assert memory_backend.keys() == []


class TestPreviewMetadata:
    """预览元数据测试"""

    def test_save_previews_skips_local_entries(self, draft_store):
        images = [
            StagedImage(url="https://cdn.test/a.jpg", angle=ImageAngle.BACK, is_primary=True, is_existing=True),
            StagedImage(url="blob:preview/123", is_local=True, filename="b.png"),
        ]
        draft_store.save_previews("product", images)

        assert draft_store.load_previews("product") == [
            {"url": "https://cdn.test/a.jpg", "angle": "back", "is_primary": True, "is_existing": True},
        ]

    def test_load_previews_non_list_is_absent(self, draft_store, memory_backend):
        memory_backend.set("product_image_previews", json.dumps({"url": "x"}))
        assert draft_store.load_previews("product") is None

        memory_backend.set("product_image_previews", "garbage")
        assert draft_store.load_previews("product") is None

    def test_load_previews_skips_invalid_entries(self, draft_store, memory_backend):
        memory_backend.set("product_image_previews", json.dumps([
            {"url": "https://cdn.test/a.jpg", "angle": "left", "isPrimary": True},
            {"angle": "front"},
            "not-an-object",
            {"url": ""},
        ]))

        entries = draft_store.load_previews("product")
        assert entries == [
            {"url": "https://cdn.test/a.jpg", "angle": "side", "is_primary": True, "is_existing": False},
        ]


class TestJsonFileBackend:
    """JSON文件后端测试"""

    def test_round_trip_survives_new_instance(self, tmp_path: Path):
        path = tmp_path / "drafts.json"
        DraftStore(JsonFileBackend(str(path))).save("product", ProductDraft(name="Cement"))

        reopened = DraftStore(JsonFileBackend(str(path)))
        assert reopened.load("product").name == "Cement"

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path):
        path = tmp_path / "drafts.json"
        path.write_text("{not-json}", encoding="utf-8")
        backend = JsonFileBackend(str(path))

        assert backend.get("product_draft") is None
        backend.set("product_draft", "{}")
        assert backend.get("product_draft") == "{}"

    def test_write_leaves_no_temp_file(self, tmp_path: Path):
        path = tmp_path / "nested" / "drafts.json"
        backend = JsonFileBackend(str(path))
        backend.set("k", "v")
        backend.delete("k")

        assert path.exists()
        assert not Path(f"{path}.tmp").exists()
        assert backend.keys() == []


def test_create_draft_store_from_config(tmp_path: Path):
    memory = create_draft_store({"backend": "memory"})
    assert isinstance(memory.backend, MemoryBackend)

    json_store = create_draft_store({"backend": "json", "path": str(tmp_path / "d.json")})
    assert isinstance(json_store.backend, JsonFileBackend)


class TestDraftAutosaver:
    """防抖自动保存测试"""

    def test_zero_debounce_writes_immediately(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=0)
        saver.schedule(ProductDraft(name="A"))

        assert draft_store.load("product").name == "A"
        assert saver.writes == 1

    def test_schedule_snapshots_the_draft(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=0)
        draft = ProductDraft(name="A")
        saver.schedule(draft)
        draft.name = "changed"

        assert draft_store.load("product").name == "A"

    @pytest.mark.asyncio
    async def test_debounce_coalesces_writes(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=0.05)
        for i in range(5):
            saver.schedule(ProductDraft(name=f"v{i}"))

        assert saver.pending
        assert draft_store.load("product") is None

        await asyncio.sleep(0.15)

        assert saver.writes == 1
        assert draft_store.load("product").name == "v4"

    @pytest.mark.asyncio
    async def test_debounced_decimal_draft_is_written(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=0.05)
        saver.schedule(ProductDraft(price=Decimal("12.50")))

        await asyncio.sleep(0.15)

        assert saver.writes == 1
        assert draft_store.load("product").price == "12.50"

    @pytest.mark.asyncio
    async def test_flush_writes_pending_now(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=10)
        saver.schedule(ProductDraft(name="pending"))

        saver.flush()

        assert not saver.pending
        assert draft_store.load("product").name == "pending"

    @pytest.mark.asyncio
    async def test_clear_is_not_overwritten_by_pending_save(self, draft_store):
        saver = DraftAutosaver(draft_store, "product", debounce_seconds=0.05)
        saver.schedule(ProductDraft(name="stale"))

        saver.clear()
        await asyncio.sleep(0.15)

        assert draft_store.load("product") is None
        assert saver.writes == 0


def test_autosave_write_failure_is_logged_not_raised(draft_store):
    store = Mock(wraps=draft_store)
    store.save.side_effect = DraftStoreError("disk full")
    saver = DraftAutosaver(store, "product", debounce_seconds=0)

    saver.schedule(ProductDraft(name="A"))

    assert saver.writes == 0
    store.save.assert_called_once()
