"""Unit tests for StoreConfig persistence."""

import json

from o3plot.plot_config.config_store import ConfigStore
from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_config.store_config import SCHEMA_VERSION, StoreConfig, StoreConfigData


def test_load_missing_file_uses_defaults(tmp_path):
    path = tmp_path / "plot_config.json"
    cfg = StoreConfig.load(config_path=path)
    assert cfg.data.schema_version == SCHEMA_VERSION
    assert cfg.data.store == {}
    assert not path.exists()
    assert cfg.get_store().to_dict() == ConfigStore().to_dict()


def test_load_missing_file_create_if_missing(tmp_path):
    path = tmp_path / "sub" / "plot_config.json"
    StoreConfig.load(config_path=path, create_if_missing=True)
    assert path.exists()
    assert json.loads(path.read_text())["schema_version"] == SCHEMA_VERSION


def test_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "plot_config.json"
    store = ConfigStore()
    store.add_model_group("g2", "Second", ["a", "b"])
    store.set_active_plot(PlotId.TCO3_RETURN)
    store.set_months([6, 7])

    cfg = StoreConfig(path=path)
    cfg.set_store(store)
    cfg.save()

    loaded = StoreConfig.load(config_path=path).get_store()
    assert loaded.to_dict() == store.to_dict()
    assert loaded.plot.plot_id is PlotId.TCO3_RETURN


def test_load_invalid_json_uses_defaults(tmp_path):
    path = tmp_path / "plot_config.json"
    path.write_text("{not json", encoding="utf-8")
    cfg = StoreConfig.load(config_path=path)
    assert cfg.data.store == {}


def test_load_non_dict_uses_defaults(tmp_path):
    path = tmp_path / "plot_config.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    cfg = StoreConfig.load(config_path=path)
    assert cfg.data.store == {}


def test_schema_mismatch_resets_by_default(tmp_path):
    path = tmp_path / "plot_config.json"
    path.write_text(json.dumps({"schema_version": 999, "store": {"reference": {"year": 2001}}}))
    cfg = StoreConfig.load(config_path=path)
    assert cfg.data.store == {}


def test_schema_mismatch_keep_loaded(tmp_path):
    path = tmp_path / "plot_config.json"
    path.write_text(json.dumps({"schema_version": 999, "store": {"reference": {"year": 2001}}}))
    cfg = StoreConfig.load(config_path=path, reset_on_version_mismatch=False)
    assert cfg.data.schema_version == SCHEMA_VERSION
    assert cfg.get_store().reference.year == 2001


def test_from_json_dict_ignores_unknown_keys_and_bad_store():
    data = StoreConfigData.from_json_dict({"schema_version": 1, "store": "oops", "extra": 1})
    assert data.schema_version == 1
    assert data.store == {}
