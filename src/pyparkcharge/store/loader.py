"""Table manifest discovery and loading."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from importlib import resources
from importlib.metadata import PackageNotFoundError
from importlib.resources.abc import Traversable

from ..exceptions import ConfigError
from ..models import ResourceType

MANIFEST_FILENAME = "manifest.json"
SCHEMA_FILENAME = "manifest.schema.json"
_REQUIRED_TEXT_KEYS = (
    "resource_type",
    "reservation_table",
    "resource_table",
    "resource_id_column",
    "primary_id_column",
    "transaction_id_column",
)
_REQUIRED_LIST_KEYS = ("resource_ref_columns", "address_columns", "rate_columns")
_MANIFEST_CACHE: tuple[TableManifest, ...] | None = None


@dataclass(frozen=True, slots=True)
class TableManifest:
    resource_type: ResourceType
    reservation_table: str
    resource_table: str
    resource_id_column: str
    primary_id_column: str
    transaction_id_column: str
    resource_ref_columns: tuple[str, ...]
    address_columns: tuple[str, ...]
    rate_columns: tuple[str, ...] = ()
    power_column: str | None = None
    insert_defaults: Mapping[str, str] = field(default_factory=dict)


def _store_root() -> Traversable:
    return resources.files("pyparkcharge.store")


def load_manifest_schema() -> dict:
    schema_path = _store_root() / SCHEMA_FILENAME
    return json.loads(schema_path.read_text(encoding="utf-8"))


def _text_tuple(data: dict, key: str) -> tuple[str, ...]:
    value = data.get(key)
    if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
        raise ConfigError(f"Table manifest {key} must be a list of non-empty strings.")
    return tuple(value)


def _build_manifest(data: dict, folder_name: str) -> TableManifest:
    if not isinstance(data, dict):
        raise ConfigError("Table manifest must be a JSON object.")
    missing = [key for key in (*_REQUIRED_TEXT_KEYS, *_REQUIRED_LIST_KEYS) if key not in data]
    if missing:
        raise ConfigError(f"Table manifest missing keys: {', '.join(missing)}.")
    for key in _REQUIRED_TEXT_KEYS:
        if not isinstance(data[key], str) or not data[key]:
            raise ConfigError(f"Table manifest {key} must be a non-empty string.")
    if data["resource_type"] != folder_name:
        raise ConfigError("Table manifest resource_type must match its folder name.")
    try:
        resource_type = ResourceType(data["resource_type"])
    except ValueError as exc:
        raise ConfigError("Table manifest resource_type is not supported.") from exc
    power_column = data.get("power_column")
    if power_column is not None and (not isinstance(power_column, str) or not power_column):
        raise ConfigError("Table manifest power_column must be a string or null.")
    insert_defaults = data.get("insert_defaults", {})
    if not isinstance(insert_defaults, dict) or not all(
        isinstance(value, str) for value in insert_defaults.values()
    ):
        raise ConfigError("Table manifest insert_defaults must map columns to strings.")
    resource_ref_columns = _text_tuple(data, "resource_ref_columns")
    address_columns = _text_tuple(data, "address_columns")
    if not resource_ref_columns or not address_columns:
        raise ConfigError("Table manifest column lists must not be empty.")
    return TableManifest(
        resource_type=resource_type,
        reservation_table=data["reservation_table"],
        resource_table=data["resource_table"],
        resource_id_column=data["resource_id_column"],
        primary_id_column=data["primary_id_column"],
        transaction_id_column=data["transaction_id_column"],
        resource_ref_columns=resource_ref_columns,
        address_columns=address_columns,
        rate_columns=_text_tuple(data, "rate_columns"),
        power_column=power_column,
        insert_defaults=dict(insert_defaults),
    )


def iter_manifest_files() -> Iterable[tuple[str, Traversable]]:
    root = _store_root()
    for entry in root.iterdir():
        if not entry.is_dir():
            continue
        manifest_path = entry / MANIFEST_FILENAME
        if manifest_path.is_file():
            yield entry.name, manifest_path


def load_manifests() -> list[TableManifest]:
    global _MANIFEST_CACHE
    if _MANIFEST_CACHE is not None:
        return list(_MANIFEST_CACHE)
    manifests: list[TableManifest] = []
    try:
        for folder_name, manifest_path in iter_manifest_files():
            try:
                data = json.loads(manifest_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigError("Table manifest is not valid JSON.") from exc
            manifests.append(_build_manifest(data, folder_name))
    except (ModuleNotFoundError, PackageNotFoundError) as exc:
        _MANIFEST_CACHE = None
        raise ConfigError("Store package was not found.") from exc
    _MANIFEST_CACHE = tuple(manifests)
    return list(_MANIFEST_CACHE)


def clear_manifest_cache() -> None:
    """Clear cached table manifests (used in tests)."""
    global _MANIFEST_CACHE
    _MANIFEST_CACHE = None


def get_manifest(resource_type: ResourceType | str) -> TableManifest:
    for manifest in load_manifests():
        if manifest.resource_type == resource_type:
            return manifest
    raise ConfigError(f"No table manifest for resource type {resource_type!r}.")
