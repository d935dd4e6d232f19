"""
Unit tests for knowledge table loading.
"""

import json
import shutil
from dataclasses import FrozenInstanceError

import pytest

from ..config import DEFAULT_KNOWLEDGE_BASE_PATH
from ..knowledge_base import KnowledgeBaseError, load_knowledge_base
from ..locations import LocationDirectory


@pytest.fixture
def data_dir(tmp_path):
    """Writable copy of the packaged knowledge tables."""
    target = tmp_path / "data"
    shutil.copytree(DEFAULT_KNOWLEDGE_BASE_PATH, target)
    return target


def _edit_json(path, edit):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    edit(data)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)


@pytest.mark.unit
class TestLoadKnowledgeBase:

    def test_packaged_tables(self, knowledge_base):
        summary = knowledge_base.summary()
        assert knowledge_base.version == "2025.06.1"
        assert summary["locations"] > 0
        assert summary["routes"] == 12
        assert summary["categories"] == 12
        assert summary["faqs"] > 0

    def test_tables_are_immutable(self, knowledge_base):
        with pytest.raises(FrozenInstanceError):
            knowledge_base.version = "changed"
        with pytest.raises(FrozenInstanceError):
            knowledge_base.locations[0].name = "changed"

    def test_malformed_location_row_is_skipped(self, data_dir, knowledge_base):
        def break_rows(data):
            data["locations"][0]["maps_url"] = ""
            del data["locations"][1]["name"]

        _edit_json(data_dir / "locations.json", break_rows)
        loaded = load_knowledge_base(data_dir)

        assert len(loaded.locations) == len(knowledge_base.locations) - 2
        directory = LocationDirectory(loaded.locations, loaded.routes, loaded.fuzzy_aliases)
        assert directory.find_location("library").id == "central-library"

    def test_duplicate_id_is_skipped(self, data_dir, knowledge_base):
        def duplicate(data):
            data["faqs"].append(dict(data["faqs"][0], question="Duplicate?"))

        _edit_json(data_dir / "faqs.json", duplicate)
        loaded = load_knowledge_base(data_dir)
        assert len(loaded.faqs) == len(knowledge_base.faqs)

    def test_alias_to_unknown_location_is_skipped(self, data_dir):
        def add_alias(data):
            data["fuzzy_aliases"]["moon base"] = "moon"

        _edit_json(data_dir / "locations.json", add_alias)
        loaded = load_knowledge_base(data_dir)
        assert "moon base" not in loaded.fuzzy_aliases
        assert loaded.fuzzy_aliases["hungry"] == "canteen"

    def test_missing_file(self, data_dir):
        (data_dir / "faqs.json").unlink()
        with pytest.raises(KnowledgeBaseError, match="not found"):
            load_knowledge_base(data_dir)

    def test_invalid_json(self, data_dir):
        (data_dir / "routes.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(KnowledgeBaseError, match="Invalid JSON"):
            load_knowledge_base(data_dir)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(KnowledgeBaseError):
            load_knowledge_base(tmp_path / "nowhere")

    def test_missing_top_level_key(self, data_dir):
        (data_dir / "qa_database.json").write_text('{"rows": []}', encoding="utf-8")
        with pytest.raises(KnowledgeBaseError):
            load_knowledge_base(data_dir)
