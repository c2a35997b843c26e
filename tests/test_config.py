import json

import pytest

from celltype_replicability.config import AnalysisConfig, load_config


def test_yaml_config_overrides_defaults(tmp_path):
    path = tmp_path / "analysis.yaml"
    path.write_text(
        "ordering:\n  na_value: 0.5\n  undefined: first\nsummary:\n  normalize_library_size: false\n  assay: logcounts\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.ordering.na_value == 0.5
    assert cfg.ordering.undefined == "first"
    assert cfg.ordering.alpha_row == 10.0
    assert cfg.summary.normalize_library_size is False
    assert cfg.summary.assay == "logcounts"


def test_json_config_round_trips_to_dict(tmp_path):
    path = tmp_path / "analysis.json"
    path.write_text(json.dumps({"summary": {"average_expressing_only": True}}), encoding="utf-8")
    cfg = load_config(path)
    assert cfg.summary.average_expressing_only is True
    assert cfg.to_dict()["ordering"] == AnalysisConfig().to_dict()["ordering"]


def test_bad_configs_are_rejected(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    txt = tmp_path / "analysis.txt"
    txt.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(txt)

    unknown = tmp_path / "unknown.json"
    unknown.write_text(json.dumps({"summary": {"alpha_rows": 2}}), encoding="utf-8")
    with pytest.raises(ValueError, match="alpha_rows"):
        load_config(unknown)
