"""Unit tests for the in-memory template collection (app.domain.template_store)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.domain.catalog import new_element
from app.domain.errors import NotFound
from app.domain.template_store import TemplateStore


class TestTemplates:
    @pytest.mark.unit
    def test_list_keeps_insertion_order(self, store):
        assert [t.id for t in store.list_templates()] == ["tpl_sample", "tpl_portrait"]

    @pytest.mark.unit
    def test_get_unknown_raises(self, store):
        with pytest.raises(NotFound):
            store.get_template("nope")

    @pytest.mark.unit
    def test_create_with_defaults(self, store):
        created = store.create_template()
        assert created.name == "Novo Modelo Personalizado"
        assert (created.width_px, created.height_px, created.orientation) == (340, 215, "landscape")
        assert len(created.elements) == 1
        seed = created.elements[0]
        assert (seed.type, seed.label, seed.x, seed.y, seed.layer) == ("text-dynamic", "Nome", 10.0, 10.0, "front")
        assert store.active_template_id == created.id
        assert store.list_templates()[-1].id == created.id

    @pytest.mark.unit
    def test_create_accepts_camel_case_seed(self, store):
        created = store.create_template({"name": "Vertical", "orientation": "portrait", "frontBackground": "#000"})
        assert created.orientation == "portrait"
        assert created.front_background == "#000"

    @pytest.mark.unit
    def test_update_merges_and_keeps_id(self, store):
        updated = store.update_template("tpl_sample", {"name": "Renamed", "id": "hijack"})
        assert updated.id == "tpl_sample"
        assert updated.name == "Renamed"
        assert len(updated.elements) == 6

    @pytest.mark.unit
    def test_update_revalidates(self, store):
        with pytest.raises(ValidationError):
            store.update_template("tpl_sample", {"widthPx": 0})
        assert store.get_template("tpl_sample").width_px == 340

    @pytest.mark.unit
    def test_delete(self, store):
        store.active_template_id = "tpl_sample"
        store.delete_template("tpl_sample")
        assert [t.id for t in store.list_templates()] == ["tpl_portrait"]
        assert store.active_template_id is None
        with pytest.raises(NotFound):
            store.delete_template("tpl_sample")


class TestSavedFlag:
    @pytest.mark.unit
    def test_mutation_clears_saved(self, store):
        store.mark_saved()
        assert store.saved
        store.update_element("tpl_sample", "name", {"x": 30})
        assert not store.saved

    @pytest.mark.unit
    def test_reads_keep_saved(self, store):
        store.mark_saved()
        store.list_templates()
        store.get_element("tpl_sample", "name")
        assert store.saved


class TestElements:
    @pytest.mark.unit
    def test_update_element_is_immutable_replacement(self, store):
        before = store.get_template("tpl_sample")
        updated = store.update_element("tpl_sample", "name", {"x": 31.5, "y": 12})
        after = store.get_template("tpl_sample")
        assert before is not after
        assert before.find_element("name").x == 25
        assert (updated.x, updated.y) == (31.5, 12)
        assert [el.id for el in after.elements] == [el.id for el in before.elements]

    @pytest.mark.unit
    def test_update_element_merges_style(self, store):
        updated = store.update_element("tpl_sample", "name", {"style": {"color": "#ff0000", "fontWeight": "bold"}})
        assert updated.style.color == "#ff0000"
        assert updated.style.font_size == "14px"
        assert updated.style.get("fontWeight") == "bold"

    @pytest.mark.unit
    def test_update_unknown_element(self, store):
        with pytest.raises(NotFound):
            store.update_element("tpl_sample", "ghost", {"x": 1})

    @pytest.mark.unit
    def test_add_and_remove(self, store):
        store.add_element("tpl_sample", new_element("shape", "front", element_id="box"))
        assert store.get_template("tpl_sample").elements[-1].id == "box"
        store.remove_element("tpl_sample", "box")
        assert store.get_template("tpl_sample").find_element("box") is None

    @pytest.mark.unit
    def test_remove_unknown_raises(self, store):
        with pytest.raises(NotFound):
            store.remove_element("tpl_sample", "ghost")

    @pytest.mark.unit
    def test_move_up_and_down(self, store):
        store.move_element("tpl_sample", "name", "up")
        assert [el.id for el in store.get_template("tpl_sample").elements][:2] == ["photo", "name"]
        store.move_element("tpl_sample", "name", "down")
        assert [el.id for el in store.get_template("tpl_sample").elements][:2] == ["name", "photo"]

    @pytest.mark.unit
    def test_move_at_edges_is_noop(self, store):
        ids = [el.id for el in store.get_template("tpl_sample").elements]
        store.move_element("tpl_sample", "name", "down")
        store.move_element("tpl_sample", "bar", "up")
        assert [el.id for el in store.get_template("tpl_sample").elements] == ids

    @pytest.mark.unit
    def test_move_bad_direction(self, store):
        with pytest.raises(ValueError):
            store.move_element("tpl_sample", "name", "sideways")

    @pytest.mark.unit
    def test_replace_all_drops_stale_active(self, store, template):
        store.active_template_id = "tpl_portrait"
        store.replace_all([template])
        assert store.active_template_id is None
        assert [t.id for t in store.list_templates()] == ["tpl_sample"]

    @pytest.mark.unit
    def test_empty_store(self):
        assert TemplateStore().list_templates() == []
