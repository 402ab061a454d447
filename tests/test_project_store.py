"""Tests for the project store."""

import json
import math

import pytest
from conftest import BASE_TIMESTAMP, FlakyStorage, make_elements, make_project

from agro_canvas.config import Settings
from agro_canvas.repositories import (
    SCHEMA_VERSION,
    ProjectStore,
    StorageKeys,
    derive_project_id,
)
from agro_canvas.schemas import CanvasSize, DrawingElement, ProjectMetadata, UserPreferences
from agro_canvas.storage import MemoryStorage

KEYS = StorageKeys.with_prefix("agroecologia-")


class TestStorageKeys:
    def test_prefixed_keys(self):
        """Test every owned key carries the default prefix."""
        assert KEYS.current_project == "agroecologia-current-project"
        assert KEYS.project_history == "agroecologia-project-history"
        assert KEYS.user_preferences == "agroecologia-user-preferences"
        assert KEYS.last_save == "agroecologia-last-save"
        assert KEYS.app_version == "agroecologia-app-version"

    def test_custom_prefix(self, storage):
        """Test the prefix comes from settings."""
        store = ProjectStore(storage, Settings(storage_key_prefix="test-"))
        assert all(key.startswith("test-") for key in store.keys.all())


class TestCurrentProject:
    def test_empty_store(self, store):
        """Test an empty store has no current project."""
        assert store.get_current_project() is None

    def test_save_then_load(self, store, project):
        """Test a saved project loads back with its elements."""
        result = store.save_current_project(project)
        assert result.ok

        loaded = store.get_current_project()
        assert loaded is not None
        assert loaded.timestamp == project.timestamp
        assert loaded.canvas_size == project.canvas_size
        assert [e.id for e in loaded.elements] == [e.id for e in project.elements]
        assert loaded.elements[0].plant.spacing == "3x3m"

    def test_save_sets_last_modified(self, store, project):
        """Test saving stamps lastModified in UTC."""
        assert project.last_modified is None
        store.save_current_project(project)
        assert project.last_modified is not None
        assert project.last_modified.endswith("Z")

    def test_save_rewrites_elements_count(self, store, elements):
        """Test a wrong elementsCount is replaced with the real count."""
        project = make_project(
            elements=elements, metadata=ProjectMetadata(elements_count=99)
        )
        result = store.save_current_project(project)

        assert result.value.metadata.elements_count == len(elements)
        assert store.get_current_project().metadata.elements_count == len(elements)

    def test_persisted_in_camel_case(self, store, storage, project):
        """Test the stored JSON uses camelCase keys."""
        store.save_current_project(project)
        data = json.loads(storage.get_item(KEYS.current_project))
        assert "canvasSize" in data
        assert "selectedTool" in data
        assert data["metadata"]["elementsCount"] == len(project.elements)

    def test_save_records_version_and_time(self, store, storage, project):
        """Test saving writes the schema version and last-save time."""
        store.save_current_project(project)
        assert storage.get_item(KEYS.app_version) == SCHEMA_VERSION
        assert store.get_last_save_time() > BASE_TIMESTAMP

    def test_save_accepts_wire_mapping(self, store, project):
        """Test a camelCase mapping can be saved directly."""
        result = store.save_current_project(project.to_wire())
        assert result.ok
        assert store.get_current_project().selected_tool == "select"

    def test_invalid_project_rejected(self, store, storage):
        """Test an invalid element blocks every write."""
        bad = make_project(elements=[DrawingElement(id=1, type="rectangle", x=1e7, y=0)])
        result = store.save_current_project(bad)

        assert not result.ok
        assert "coordinate" in result.error
        assert storage.get_item(KEYS.current_project) is None
        assert store.get_project_history() == []

    def test_invalid_canvas_rejected(self, store):
        """Test an out-of-range canvas is refused."""
        result = store.save_current_project(
            make_project(canvas_size=CanvasSize(width=0, height=10))
        )
        assert not result.ok
        assert "Canvas width" in result.error

    def test_invalid_save_keeps_previous_project(self, store, project):
        """Test a refused save leaves the stored project in place."""
        store.save_current_project(project)
        store.save_current_project(make_project(canvas_size=CanvasSize(width=0, height=1)))
        assert store.get_current_project().canvas_size.width == 50

    def test_non_finite_id_keeps_previous_project(self, store, project):
        """Test an element with an infinite id cannot overwrite the saved project."""
        store.save_current_project(project)
        bad = make_project(
            timestamp=BASE_TIMESTAMP + 1,
            elements=[DrawingElement(id=math.inf, type="circle", x=1, y=1, radius=2)],
        )

        result = store.save_current_project(bad)

        assert not result.ok
        assert "id must be a finite number" in result.error
        loaded = store.get_current_project()
        assert loaded is not None
        assert loaded.timestamp == BASE_TIMESTAMP

    def test_nan_from_json_refused(self, store, project):
        """Test NaN values parsed from JSON text are refused."""
        store.save_current_project(project)
        document = json.loads(
            '{"version": "1.0", "timestamp": 5, "canvasSize": {"width": 10, "height": 10},'
            ' "selectedTool": "select",'
            ' "elements": [{"id": 1, "type": "circle", "x": 1, "y": 1, "radius": NaN}]}'
        )

        assert not store.save_current_project(document).ok
        assert store.get_current_project().timestamp == BASE_TIMESTAMP

    def test_corrupt_json_reads_as_none(self, store, storage):
        """Test unparseable stored data reads as absent."""
        storage.set_item(KEYS.current_project, "{not json")
        assert store.get_current_project() is None

    def test_structurally_invalid_reads_as_none(self, store, storage):
        """Test a stored object missing fields reads as absent."""
        storage.set_item(KEYS.current_project, json.dumps({"version": "1.0"}))
        assert store.get_current_project() is None

    def test_unreadable_substrate_reads_as_none(self):
        """Test a failing substrate reads as absent instead of raising."""
        store = ProjectStore(FlakyStorage(fail_all=True), Settings())
        assert store.get_current_project() is None

    def test_primary_write_failure(self, project):
        """Test a failed project write skips the secondary writes."""
        storage = FlakyStorage(failing_keys=(KEYS.current_project,))
        store = ProjectStore(storage, Settings())

        result = store.save_current_project(project)

        assert not result.ok
        assert storage.get_item(KEYS.project_history) is None
        assert storage.get_item(KEYS.last_save) is None

    def test_secondary_write_failure_still_succeeds(self, project):
        """Test a failed history write does not fail the save."""
        storage = FlakyStorage(failing_keys=(KEYS.project_history,))
        store = ProjectStore(storage, Settings())

        assert store.save_current_project(project).ok
        assert store.get_current_project() is not None
        assert store.get_project_history() == []


class TestHistory:
    def test_save_adds_entry(self, store, project):
        """Test a save records a summary entry."""
        store.save_current_project(project)
        history = store.get_project_history()

        assert len(history) == 1
        entry = history[0]
        assert entry.id == derive_project_id(project)
        assert entry.timestamp == BASE_TIMESTAMP
        assert entry.elements_count == len(project.elements)
        assert entry.canvas_size == project.canvas_size
        assert entry.name.startswith("Projeto ")

    def test_entry_name_from_project_info(self, store):
        """Test projectInfo becomes the entry name."""
        project = make_project(metadata=ProjectMetadata(project_info="Horta da escola"))
        store.save_current_project(project)
        assert store.get_project_history()[0].name == "Horta da escola"

    def test_repeated_saves_share_one_entry(self, store, project):
        """Test saving the same project twice keeps one entry."""
        store.save_current_project(project)
        store.save_current_project(project)
        assert len(store.get_project_history()) == 1

    def test_newest_first(self, store):
        """Test the most recent save is listed first."""
        for offset in range(3):
            store.save_current_project(make_project(timestamp=BASE_TIMESTAMP + offset))

        timestamps = [entry.timestamp for entry in store.get_project_history()]
        assert timestamps == [BASE_TIMESTAMP + 2, BASE_TIMESTAMP + 1, BASE_TIMESTAMP]

    def test_resaved_project_moves_to_front(self, store):
        """Test re-saving an older project moves its entry to the front."""
        first = make_project(timestamp=BASE_TIMESTAMP)
        store.save_current_project(first)
        store.save_current_project(make_project(timestamp=BASE_TIMESTAMP + 1))
        store.save_current_project(first)

        timestamps = [entry.timestamp for entry in store.get_project_history()]
        assert timestamps == [BASE_TIMESTAMP, BASE_TIMESTAMP + 1]

    def test_history_bounded_at_limit(self, store):
        """Test 51 saves keep the newest 50 and evict the oldest."""
        for offset in range(51):
            store.save_current_project(make_project(timestamp=BASE_TIMESTAMP + offset))

        history = store.get_project_history()
        assert len(history) == 50
        assert history[0].timestamp == BASE_TIMESTAMP + 50
        assert BASE_TIMESTAMP not in {entry.timestamp for entry in history}

    def test_custom_history_limit(self, storage):
        """Test the history limit comes from settings."""
        store = ProjectStore(storage, Settings(history_limit=2))
        for offset in range(4):
            store.save_current_project(make_project(timestamp=BASE_TIMESTAMP + offset))
        assert len(store.get_project_history()) == 2

    def test_delete_entry(self, store, project):
        """Test deleting by id removes the entry."""
        store.save_current_project(project)
        project_id = derive_project_id(project)

        assert store.delete_project_from_history(project_id).ok
        assert store.get_project_history() == []

    def test_delete_unknown_entry(self, store, project):
        """Test deleting an unknown id fails and changes nothing."""
        store.save_current_project(project)
        result = store.delete_project_from_history("does-not-exist")

        assert not result.ok
        assert "not found" in result.error
        assert len(store.get_project_history()) == 1

    def test_delete_removes_only_matching_entry(self, store):
        """Test deletion leaves other entries alone."""
        store.save_current_project(make_project(timestamp=BASE_TIMESTAMP))
        keep = make_project(timestamp=BASE_TIMESTAMP + 1)
        store.save_current_project(keep)

        store.delete_project_from_history(derive_project_id(make_project()))

        assert [entry.id for entry in store.get_project_history()] == [derive_project_id(keep)]

    def test_load_current_from_history(self, store, project):
        """Test the current project can be reopened by its history id."""
        store.save_current_project(project)
        loaded = store.load_project_from_history(derive_project_id(project))
        assert loaded is not None
        assert loaded.timestamp == project.timestamp

    def test_load_other_entry_is_none(self, store):
        """Test entries other than the current project cannot be reopened."""
        older = make_project(timestamp=BASE_TIMESTAMP)
        store.save_current_project(older)
        store.save_current_project(make_project(timestamp=BASE_TIMESTAMP + 1))
        assert store.load_project_from_history(derive_project_id(older)) is None

    def test_malformed_history_reads_as_empty(self, store, storage):
        """Test unparseable history reads as empty."""
        storage.set_item(KEYS.project_history, "{oops")
        assert store.get_project_history() == []

    def test_malformed_entries_skipped(self, store, storage, project):
        """Test a broken entry is skipped and the rest kept."""
        store.save_current_project(project)
        history = json.loads(storage.get_item(KEYS.project_history))
        history.append({"id": "broken"})
        storage.set_item(KEYS.project_history, json.dumps(history))

        assert len(store.get_project_history()) == 1


class TestDeriveProjectId:
    def test_deterministic(self):
        """Test equal projects get equal ids."""
        assert derive_project_id(make_project()) == derive_project_id(make_project())

    def test_depends_on_fingerprint(self):
        """Test timestamp, element count and canvas size all change the id."""
        base = derive_project_id(make_project())
        assert derive_project_id(make_project(timestamp=BASE_TIMESTAMP + 1)) != base
        assert derive_project_id(make_project(elements=make_elements())) != base
        assert derive_project_id(make_project(canvas_size=CanvasSize(width=10, height=10))) != base

    def test_ignores_other_fields(self):
        """Test the selected tool does not affect the id."""
        assert derive_project_id(make_project(selected_tool="brush")) == derive_project_id(
            make_project()
        )


class TestPreferences:
    def test_defaults_when_empty(self, store):
        """Test an empty store returns the default preferences."""
        prefs = store.get_user_preferences()
        assert prefs == UserPreferences()
        assert prefs.theme == "light"
        assert prefs.auto_save is True
        assert prefs.auto_save_interval == 5
        assert prefs.language == "pt-BR"

    def test_reading_is_idempotent(self, store):
        """Test two reads without a save are equal."""
        assert store.get_user_preferences() == store.get_user_preferences()

    def test_reading_does_not_write(self, store, storage):
        """Test reading preferences leaves the substrate untouched."""
        store.get_user_preferences()
        assert storage.get_item(KEYS.user_preferences) is None

    def test_partial_update_merges(self, store):
        """Test a partial update keeps the other preferences."""
        result = store.save_user_preferences({"theme": "dark"})
        assert result.ok

        prefs = store.get_user_preferences()
        assert prefs.theme == "dark"
        assert prefs.language == "pt-BR"

    def test_snake_case_keys_accepted(self, store):
        """Test attribute names work as update keys."""
        store.save_user_preferences({"auto_save_interval": 2})
        assert store.get_auto_save_interval() == 2

    def test_save_is_idempotent(self, store):
        """Test saving the current preferences changes nothing."""
        store.save_user_preferences({"theme": "dark", "autoSave": False})
        first = store.get_user_preferences()
        store.save_user_preferences(first)
        assert store.get_user_preferences() == first

    def test_invalid_update_rejected(self, store):
        """Test an invalid value is refused and the stored value kept."""
        store.save_user_preferences({"theme": "dark"})
        result = store.save_user_preferences({"theme": "neon"})

        assert not result.ok
        assert "theme" in result.error
        assert store.get_user_preferences().theme == "dark"

    def test_non_positive_interval_rejected(self, store):
        """Test the auto-save interval must be positive."""
        result = store.save_user_preferences({"autoSaveInterval": 0})
        assert not result.ok
        assert "autoSaveInterval" in result.error

    def test_non_mapping_rejected(self, store):
        """Test a list is not accepted as preferences."""
        assert not store.save_user_preferences(["theme"]).ok

    def test_stored_partial_preferences_filled(self, store, storage):
        """Test missing stored keys fall back to defaults."""
        storage.set_item(KEYS.user_preferences, json.dumps({"theme": "dark"}))
        prefs = store.get_user_preferences()
        assert prefs.theme == "dark"
        assert prefs.show_tooltips is True

    def test_stored_invalid_value_falls_back(self, store, storage):
        """Test an invalid stored value is replaced by its default."""
        storage.set_item(
            KEYS.user_preferences, json.dumps({"theme": "neon", "enableSounds": True})
        )
        prefs = store.get_user_preferences()
        assert prefs.theme == "light"
        assert prefs.enable_sounds is True

    def test_corrupt_preferences_fall_back(self, store, storage):
        """Test unparseable stored preferences read as defaults."""
        storage.set_item(KEYS.user_preferences, "[1, 2")
        assert store.get_user_preferences() == UserPreferences()

    def test_auto_save_helpers(self, store):
        """Test the auto-save read helpers follow saved preferences."""
        assert store.is_auto_save_enabled() is True
        store.save_user_preferences({"autoSave": False, "autoSaveInterval": 0.5})
        assert store.is_auto_save_enabled() is False
        assert store.get_auto_save_interval() == 0.5

    def test_write_failure(self):
        """Test a failed write is reported as failure."""
        storage = FlakyStorage(failing_keys=(KEYS.user_preferences,))
        store = ProjectStore(storage, Settings())
        assert not store.save_user_preferences({"theme": "dark"}).ok


class TestMaintenance:
    def test_clear_all_data(self, store, storage, project):
        """Test clearing removes owned keys only."""
        store.save_current_project(project)
        store.save_user_preferences({"theme": "dark"})
        storage.set_item("unrelated", "kept")

        assert store.clear_all_data().ok

        assert store.get_current_project() is None
        assert store.get_project_history() == []
        assert store.get_user_preferences() == UserPreferences()
        assert store.get_last_save_time() is None
        assert storage.get_item("unrelated") == "kept"

    def test_clear_reports_failed_keys(self, project):
        """Test a partial clear fails naming the keys left behind."""
        storage = FlakyStorage(failing_keys=(KEYS.project_history,))
        store = ProjectStore(storage, Settings())
        store.save_current_project(project)

        result = store.clear_all_data()

        assert not result.ok
        assert KEYS.project_history in result.error
        assert store.get_current_project() is None

    def test_storage_info_empty(self, store):
        """Test an empty store reports zero usage of the 5 MiB quota."""
        info = store.get_storage_info()
        assert info.used == 0
        assert info.total == 5 * 1024 * 1024
        assert info.available == info.total
        assert info.usage_percentage == 0

    def test_storage_info_counts_owned_keys(self, store, storage, project):
        """Test usage sums the byte size of owned keys only."""
        store.save_current_project(project)
        storage.set_item("unrelated", "x" * 1000)

        info = store.get_storage_info()
        expected = sum(
            len(storage.get_item(key).encode("utf-8"))
            for key in KEYS.all()
            if storage.get_item(key)
        )
        assert info.used == expected
        assert info.available == info.total - expected
        assert info.usage_percentage == pytest.approx(expected / info.total * 100)

    def test_last_save_time_malformed(self, store, storage):
        """Test a non-numeric last-save value reads as absent."""
        storage.set_item(KEYS.last_save, "yesterday")
        assert store.get_last_save_time() is None


class TestSharedStore:
    def test_two_stores_share_substrate(self, project):
        """Test stores over one substrate see each other's saves."""
        storage = MemoryStorage()
        ProjectStore(storage, Settings()).save_current_project(project)
        assert ProjectStore(storage, Settings()).get_current_project() is not None
