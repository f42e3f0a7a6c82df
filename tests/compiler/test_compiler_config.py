"""Unit tests for compiler_config module (defaults persisted as JSON)."""

from __future__ import annotations

import json
import logging

import pandas as pd

from ggtraces.compiler.compiler_config import SCHEMA_VERSION, CompilerConfig, CompilerConfigStore
from ggtraces.compiler.layer import LayerSpec, PlotContext
from ggtraces.compiler.layer_compiler import LayerCompiler


def test_json_round_trip():
    """to_json_dict/from_json_dict preserve every field."""
    config = CompilerConfig(marker_size_mult=4.0, smooth_line_colour="red")
    assert CompilerConfig.from_json_dict(config.to_json_dict()) == config


def test_from_json_dict_ignores_unknown_keys(caplog):
    """Unknown keys are dropped with a warning."""
    with caplog.at_level(logging.WARNING, logger="ggtraces"):
        config = CompilerConfig.from_json_dict({"schema_version": SCHEMA_VERSION, "bogus": 1})
    assert config == CompilerConfig()
    assert "bogus" in caplog.text


def test_from_json_dict_bad_value_uses_default():
    """A value that cannot be coerced falls back to the default."""
    config = CompilerConfig.from_json_dict({"schema_version": SCHEMA_VERSION, "marker_size_mult": "big"})
    assert config.marker_size_mult == 10.0


def test_from_json_dict_without_version_is_marked():
    """Data without a schema version gets version -1."""
    assert CompilerConfig.from_json_dict({}).schema_version == -1


def test_load_missing_file_gives_defaults(tmp_path):
    """A missing file gives defaults and is not created unless asked."""
    path = tmp_path / "compiler_config.json"
    store = CompilerConfigStore.load(config_path=path)
    assert store.data == CompilerConfig()
    assert not path.exists()
    CompilerConfigStore.load(config_path=path, create_if_missing=True)
    assert path.exists()


def test_save_and_load(tmp_path):
    """Saved settings are loaded back."""
    path = tmp_path / "sub" / "compiler_config.json"
    store = CompilerConfigStore(path=path, data=CompilerConfig(smooth_ribbon_alpha=0.4))
    store.save()
    loaded = CompilerConfigStore.load(config_path=path)
    assert loaded.data.smooth_ribbon_alpha == 0.4


def test_load_invalid_json_gives_defaults(tmp_path):
    """Unreadable JSON falls back to defaults."""
    path = tmp_path / "compiler_config.json"
    path.write_text("{not json", encoding="utf-8")
    assert CompilerConfigStore.load(config_path=path).data == CompilerConfig()


def test_load_non_dict_gives_defaults(tmp_path):
    """A JSON document that is not an object falls back to defaults."""
    path = tmp_path / "compiler_config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert CompilerConfigStore.load(config_path=path).data == CompilerConfig()


def test_version_mismatch(tmp_path):
    """Old schema versions reset to defaults unless told to keep them."""
    path = tmp_path / "compiler_config.json"
    path.write_text(json.dumps({"schema_version": 99, "marker_size_mult": 3}), encoding="utf-8")
    assert CompilerConfigStore.load(config_path=path).data.marker_size_mult == 10.0
    kept = CompilerConfigStore.load(config_path=path, reset_on_version_mismatch=False).data
    assert kept.marker_size_mult == 3.0
    assert kept.schema_version == SCHEMA_VERSION


def test_default_config_path_uses_app_name():
    """The per-user path ends with the app folder and file name."""
    path = CompilerConfigStore.default_config_path()
    assert path.name == "compiler_config.json"
    assert path.parent.name == "ggtraces"


def test_loaded_config_styles_compiled_traces(tmp_path):
    """A saved smooth colour reaches the fitted line through the plot context."""
    path = tmp_path / "compiler_config.json"
    CompilerConfigStore(path=path, data=CompilerConfig(smooth_line_colour="#FF0000")).save()
    context = PlotContext(config=CompilerConfigStore.load(config_path=path).data)
    rows = pd.DataFrame({"x": [1.0, 2.0], "y": [1.0, 2.0]})
    spec = LayerSpec(geom="smooth", stat="smooth", stat_params={"se": False})
    traces = LayerCompiler().compile(spec, rows, context)
    assert traces[0]["line"]["color"] == "rgb(255,0,0)"
