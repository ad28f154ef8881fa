import pytest

from pyparkcharge.exceptions import ConfigError
from pyparkcharge.models import ResourceType
from pyparkcharge.store import loader as loader_module


def test_manifests_cover_both_resource_types() -> None:
    loader_module.clear_manifest_cache()
    types = {manifest.resource_type for manifest in loader_module.load_manifests()}
    assert types == {ResourceType.PARKING, ResourceType.CHARGING}


def test_charging_manifest_columns() -> None:
    manifest = loader_module.get_manifest("charging")
    assert manifest.reservation_table == "Charging_Transaction"
    assert manifest.resource_ref_columns[0] == "charger_id"
    assert manifest.insert_defaults == {"status": "Active"}


def test_load_manifests_uses_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    loader_module.clear_manifest_cache()
    calls = {"count": 0}
    original = loader_module.iter_manifest_files

    def wrapped():
        calls["count"] += 1
        return original()

    monkeypatch.setattr(loader_module, "iter_manifest_files", wrapped)

    first = loader_module.load_manifests()
    second = loader_module.load_manifests()

    assert calls["count"] == 1
    assert first == second


def test_clear_manifest_cache_forces_reload(monkeypatch: pytest.MonkeyPatch) -> None:
    loader_module.clear_manifest_cache()
    calls = {"count": 0}
    original = loader_module.iter_manifest_files

    def wrapped():
        calls["count"] += 1
        return original()

    monkeypatch.setattr(loader_module, "iter_manifest_files", wrapped)

    loader_module.load_manifests()
    loader_module.clear_manifest_cache()
    loader_module.load_manifests()

    assert calls["count"] == 2


def test_build_manifest_rejects_mismatched_folder() -> None:
    data = {
        "resource_type": "parking",
        "reservation_table": "T",
        "resource_table": "R",
        "resource_id_column": "rid",
        "primary_id_column": "id",
        "transaction_id_column": "tid",
        "resource_ref_columns": ["rid"],
        "address_columns": ["address"],
        "rate_columns": [],
    }
    with pytest.raises(ConfigError):
        loader_module._build_manifest(data, "charging")


def test_build_manifest_reports_missing_keys() -> None:
    with pytest.raises(ConfigError, match="missing keys"):
        loader_module._build_manifest({"resource_type": "parking"}, "parking")
