"""Project store - persistence for the current project, its history and preferences."""

import hashlib
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from agro_canvas.config import Settings
from agro_canvas.config import settings as default_settings
from agro_canvas.results import OperationResult
from agro_canvas.schemas import ProjectData, ProjectHistoryEntry, UserPreferences
from agro_canvas.storage import KeyValueStorage, StorageError
from agro_canvas.validation import (
    CanvasValidationOptions,
    safe_json_parse,
    validate_project_data,
    validate_project_structure,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class StorageKeys:
    """Keys owned by the store within the substrate."""

    current_project: str
    project_history: str
    user_preferences: str
    last_save: str
    app_version: str

    @classmethod
    def with_prefix(cls, prefix: str) -> "StorageKeys":
        return cls(
            current_project=f"{prefix}current-project",
            project_history=f"{prefix}project-history",
            user_preferences=f"{prefix}user-preferences",
            last_save=f"{prefix}last-save",
            app_version=f"{prefix}app-version",
        )

    def all(self) -> tuple[str, ...]:
        return (
            self.current_project,
            self.project_history,
            self.user_preferences,
            self.last_save,
            self.app_version,
        )


@dataclass(frozen=True)
class StorageInfo:
    """Approximate usage of the storage quota, in bytes."""

    used: int
    available: int
    total: int
    usage_percentage: float


def utc_now_iso(now: datetime | None = None) -> str:
    """ISO-8601 timestamp in UTC with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(UTC)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def derive_project_id(project: ProjectData) -> str:
    """Deterministic history id for a project.

    Derived from creation timestamp, canvas size and element count, so
    repeated saves of the same session map onto one history entry.
    """
    fingerprint = json.dumps(
        {
            "timestamp": project.timestamp,
            "canvasSize": project.canvas_size.to_wire(),
            "elementsCount": len(project.elements),
        },
        sort_keys=True,
    )
    return hashlib.sha256(fingerprint.encode()).hexdigest()[:12]


def derive_project_name(project: ProjectData) -> str:
    """Display name for a history entry."""
    if project.metadata.project_info:
        return project.metadata.project_info
    try:
        created = datetime.fromtimestamp(project.timestamp / 1000, UTC)
    except (OverflowError, ValueError, OSError):
        return "Projeto"
    return f"Projeto {created:%d/%m/%Y %H:%M}"


def _preference_aliases(values: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize snake_case preference keys to their camelCase wire names."""
    aliases = {
        name: field.alias or name for name, field in UserPreferences.model_fields.items()
    }
    return {aliases.get(key, key): value for key, value in values.items()}


class ProjectStore:
    """Repository for the current project, project history and user preferences.

    Every public method degrades to a documented default or failure result
    when the substrate misbehaves; nothing raises to the caller.
    """

    def __init__(self, storage: KeyValueStorage, config: Settings | None = None) -> None:
        self.storage = storage
        self.config = config or default_settings
        self.keys = StorageKeys.with_prefix(self.config.storage_key_prefix)
        self.validation_options = CanvasValidationOptions.from_settings(self.config)

    # ------------------------------------------------------------------ #
    #  Substrate access
    # ------------------------------------------------------------------ #

    def _read(self, key: str) -> str | None:
        try:
            return self.storage.get_item(key)
        except StorageError as e:
            logger.error("Error reading %s: %s", key, e)
            return None

    def _write(self, key: str, value: str) -> OperationResult[None]:
        try:
            self.storage.set_item(key, value)
        except StorageError as e:
            logger.error("Error writing %s: %s", key, e)
            return OperationResult.failure(f"Could not write {key}: {e}")
        return OperationResult.success()

    # ------------------------------------------------------------------ #
    #  Current project
    # ------------------------------------------------------------------ #

    def get_current_project(self) -> ProjectData | None:
        """Load the current project, or None if missing or unreadable."""
        raw = self._read(self.keys.current_project)
        if not raw:
            return None

        parsed = safe_json_parse(raw)
        if parsed.error:
            logger.warning("Stored project is not valid JSON")
            return None

        check = validate_project_structure(parsed.data)
        if not check.is_valid:
            logger.warning("Invalid project data found in storage: %s", check.error)
            return None

        try:
            return ProjectData.model_validate(parsed.data)
        except ValidationError as e:
            logger.warning("Stored project failed schema validation: %s", e)
            return None

    def save_current_project(
        self, project: ProjectData | Mapping[str, Any]
    ) -> OperationResult[ProjectData]:
        """Validate and persist a project, then record it in history.

        On success ``last_modified`` and ``metadata.elements_count`` are
        recomputed on the project instance before it is written.
        """
        check = validate_project_data(project, self.validation_options)
        if not check.is_valid:
            logger.warning("Refusing to save invalid project: %s", check.error)
            return OperationResult.failure(check.error)

        if not isinstance(project, ProjectData):
            try:
                project = ProjectData.model_validate(project)
            except ValidationError as e:
                logger.warning("Project failed schema validation: %s", e)
                return OperationResult.failure(f"Invalid project data ({e.error_count()} errors)")

        now = datetime.now(UTC)
        project.last_modified = utc_now_iso(now)
        project.metadata.elements_count = len(project.elements)

        try:
            payload = project.model_dump_json(by_alias=True, exclude_none=True)
        except ValueError as e:
            logger.error("Could not serialize project: %s", e)
            return OperationResult.failure("Could not serialize project")

        written = self._write(self.keys.current_project, payload)
        if not written.ok:
            return OperationResult.failure(written.error)

        # Secondary writes are best-effort; failures are logged by _write.
        self._write(self.keys.last_save, str(int(now.timestamp() * 1000)))
        self._write(self.keys.app_version, SCHEMA_VERSION)
        self._add_to_history(project)

        logger.info("Saved project with %d elements", len(project.elements))
        return OperationResult.success(project)

    def get_last_save_time(self) -> int | None:
        """Epoch milliseconds of the last successful save, if any."""
        raw = self._read(self.keys.last_save)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring malformed last-save timestamp: %r", raw)
            return None

    # ------------------------------------------------------------------ #
    #  History
    # ------------------------------------------------------------------ #

    def _history_entry(self, project: ProjectData) -> ProjectHistoryEntry:
        return ProjectHistoryEntry(
            id=derive_project_id(project),
            name=derive_project_name(project),
            timestamp=project.timestamp,
            last_modified=project.last_modified or utc_now_iso(),
            canvas_size=project.canvas_size,
            elements_count=len(project.elements),
            tags=project.metadata.tags,
        )

    def _write_history(self, history: list[ProjectHistoryEntry]) -> OperationResult[None]:
        payload = json.dumps([entry.to_wire() for entry in history])
        return self._write(self.keys.project_history, payload)

    def _add_to_history(self, project: ProjectData) -> None:
        entry = self._history_entry(project)
        # A re-save replaces its existing entry and moves it to the front, so
        # auto-save ticks of one session do not fill the history with copies.
        history = [item for item in self.get_project_history() if item.id != entry.id]
        history.insert(0, entry)
        del history[self.config.history_limit :]
        self._write_history(history)

    def get_project_history(self) -> list[ProjectHistoryEntry]:
        """History entries, newest first. Unreadable entries are skipped."""
        raw = self._read(self.keys.project_history)
        if not raw:
            return []

        parsed = safe_json_parse(raw)
        if parsed.error or not isinstance(parsed.data, list):
            logger.warning("Stored project history is malformed; ignoring it")
            return []

        history = []
        for item in parsed.data:
            try:
                history.append(ProjectHistoryEntry.model_validate(item))
            except ValidationError:
                logger.warning("Skipping malformed history entry")
        return history

    def delete_project_from_history(self, project_id: str) -> OperationResult[None]:
        """Remove the history entry with ``project_id``."""
        history = self.get_project_history()
        for index, entry in enumerate(history):
            if entry.id == project_id:
                break
        else:
            return OperationResult.failure(f"Project {project_id} not found in history")

        del history[index]
        return self._write_history(history)

    def load_project_from_history(self, project_id: str) -> ProjectData | None:
        """Return the current project if ``project_id`` refers to it.

        Only the current project is stored in full; other history entries
        are summaries and cannot be reopened.
        """
        current = self.get_current_project()
        if current is not None and derive_project_id(current) == project_id:
            return current

        logger.info("Project %s not found in history", project_id)
        return None

    # ------------------------------------------------------------------ #
    #  Preferences
    # ------------------------------------------------------------------ #

    def get_user_preferences(self) -> UserPreferences:
        """Stored preferences merged over the defaults; always complete."""
        raw = self._read(self.keys.user_preferences)
        if not raw:
            return UserPreferences()

        parsed = safe_json_parse(raw)
        if parsed.error or not isinstance(parsed.data, dict):
            logger.warning("Stored user preferences are malformed; using defaults")
            return UserPreferences()

        defaults = UserPreferences().model_dump(by_alias=True)
        merged = {**defaults, **_preference_aliases(parsed.data)}
        try:
            return UserPreferences.model_validate(merged)
        except ValidationError as e:
            invalid = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
            logger.warning("Ignoring invalid stored preferences: %s", sorted(invalid))
            for key in invalid:
                merged[key] = defaults.get(key)
            merged = {key: value for key, value in merged.items() if value is not None}
            return UserPreferences.model_validate(merged)

    def save_user_preferences(
        self, preferences: UserPreferences | Mapping[str, Any]
    ) -> OperationResult[UserPreferences]:
        """Merge ``preferences`` over the current ones and persist the result."""
        if isinstance(preferences, UserPreferences):
            updates = preferences.model_dump(by_alias=True)
        elif isinstance(preferences, Mapping):
            updates = _preference_aliases(preferences)
        else:
            return OperationResult.failure("Preferences must be an object")

        current = self.get_user_preferences().model_dump(by_alias=True)
        try:
            updated = UserPreferences.model_validate({**current, **updates})
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            return OperationResult.failure(f"Invalid preference {location}: {first['msg']}")

        written = self._write(self.keys.user_preferences, updated.model_dump_json(by_alias=True))
        if not written.ok:
            return OperationResult.failure(written.error)
        return OperationResult.success(updated)

    def is_auto_save_enabled(self) -> bool:
        return self.get_user_preferences().auto_save

    def get_auto_save_interval(self) -> float:
        """Auto-save interval in minutes."""
        return self.get_user_preferences().auto_save_interval

    # ------------------------------------------------------------------ #
    #  Maintenance
    # ------------------------------------------------------------------ #

    def clear_all_data(self) -> OperationResult[None]:
        """Remove every key this store owns."""
        failed = []
        for key in self.keys.all():
            try:
                self.storage.remove_item(key)
            except StorageError as e:
                logger.error("Error clearing %s: %s", key, e)
                failed.append(key)

        if failed:
            return OperationResult.failure(f"Could not clear: {', '.join(failed)}")

        logger.info("Cleared all stored project data")
        return OperationResult.success()

    def get_storage_info(self) -> StorageInfo:
        """Bytes used by the store's keys against the configured quota."""
        used = 0
        for key in self.keys.all():
            value = self._read(key)
            if value:
                used += len(value.encode("utf-8"))

        total = self.config.storage_quota_bytes
        return StorageInfo(
            used=used,
            available=total - used,
            total=total,
            usage_percentage=(used / total) * 100 if total else 0.0,
        )
