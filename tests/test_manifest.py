"""Tests for preset and generation manifest loaders."""

import pytest
import yaml

from presetcompose.manifest import load_generation_manifest, load_preset

TEXT_FUNCTION = "lambda data, props: {'childrenData': [{'id': 't', 'data': data}]}"


def _write(path, content: dict):
    path.write_text(yaml.dump(content))
    return path


def _preset(**overrides):
    """Return a minimal valid preset artifact dict."""
    p = {
        "metadata": {"id": "text", "title": "Text", "presetType": "children"},
        "presetFunction": TEXT_FUNCTION,
        "presetParams": {"type": "object"},
    }
    p.update(overrides)
    return p


def _minimal_manifest(**overrides):
    m = {
        "references": [{"key": "title", "type": "string", "value": "Hi"}],
        "presets": [_preset()],
        "sequence": [{"preset": "text", "inputData": {"text": "data:[title]"}}],
    }
    m.update(overrides)
    return m


class TestLoadPreset:
    def test_loads_fields(self, tmp_path):
        preset = load_preset(_write(tmp_path / "p.yaml", _preset()))
        assert preset["metadata"]["id"] == "text"
        assert preset["presetFunction"] == TEXT_FUNCTION
        assert preset["presetParams"] == {"type": "object"}

    def test_missing_metadata_raises(self, tmp_path):
        path = _write(tmp_path / "p.yaml", {"presetFunction": TEXT_FUNCTION})
        with pytest.raises(ValueError, match="metadata"):
            load_preset(path)

    def test_invalid_preset_type_raises(self, tmp_path):
        bad = _preset(metadata={"id": "x", "presetType": "overlay"})
        with pytest.raises(ValueError, match="invalid presetType 'overlay'"):
            load_preset(_write(tmp_path / "p.yaml", bad))

    def test_missing_function_raises(self, tmp_path):
        bad = _preset()
        del bad["presetFunction"]
        with pytest.raises(ValueError, match="presetFunction"):
            load_preset(_write(tmp_path / "p.yaml", bad))

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_preset(tmp_path / "nope.yaml")


class TestLoadGenerationManifest:
    def test_base_data_built(self, tmp_path):
        config = load_generation_manifest(_write(tmp_path / "m.yaml", _minimal_manifest()))
        assert config["base_data"] == {"title": "Hi"}

    def test_sequence_bound_to_presets(self, tmp_path):
        config = load_generation_manifest(_write(tmp_path / "m.yaml", _minimal_manifest()))
        entry = config["sequence"][0]
        assert entry["presetId"] == "text"
        assert entry["preset"]["metadata"]["presetType"] == "children"
        assert entry["inputData"] == {"text": "data:[title]"}
        assert entry["disabled"] is False

    def test_composition_optional(self, tmp_path):
        config = load_generation_manifest(_write(tmp_path / "m.yaml", _minimal_manifest()))
        assert config["composition"] is None
        assert config["flexible"] is False

    def test_composition_loaded(self, tmp_path):
        m = _minimal_manifest(composition={"config": {"fps": 24, "duration": 5}})
        config = load_generation_manifest(_write(tmp_path / "m.yaml", m))
        assert config["composition"] == {
            "childrenData": [],
            "config": {"fps": 24, "duration": 5},
            "style": {},
        }

    def test_negative_duration_raises(self, tmp_path):
        m = _minimal_manifest(composition={"config": {"duration": -1}})
        with pytest.raises(ValueError, match="duration"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_preset_paths_with_variables(self, tmp_path):
        (tmp_path / "presets").mkdir()
        _write(tmp_path / "presets" / "text.yaml", _preset())
        m = _minimal_manifest(
            paths={"lib": str(tmp_path / "presets")},
            presets=[{"path": "${lib}/text.yaml"}],
        )
        config = load_generation_manifest(_write(tmp_path / "m.yaml", m))
        assert "text" in config["presets"]

    def test_relative_preset_path_from_manifest_dir(self, tmp_path):
        (tmp_path / "presets").mkdir()
        _write(tmp_path / "presets" / "text.yaml", _preset())
        m = _minimal_manifest(presets=[{"path": "presets/text.yaml"}])
        config = load_generation_manifest(_write(tmp_path / "m.yaml", m))
        assert config["presets"]["text"]["presetFunction"] == TEXT_FUNCTION

    def test_missing_preset_file_raises(self, tmp_path):
        m = _minimal_manifest(presets=[{"path": "nowhere.yaml"}], sequence=[])
        with pytest.raises(FileNotFoundError, match="nowhere.yaml"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_duplicate_preset_id_raises(self, tmp_path):
        m = _minimal_manifest(presets=[_preset(), _preset()])
        with pytest.raises(ValueError, match="Duplicate preset id"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_unknown_sequence_preset_raises(self, tmp_path):
        m = _minimal_manifest(sequence=[{"preset": "ghost"}])
        with pytest.raises(ValueError, match="unknown preset 'ghost'"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_invalid_reference_type_raises(self, tmp_path):
        m = _minimal_manifest(references=[{"key": "k", "type": "video", "value": 1}])
        with pytest.raises(ValueError, match="invalid type 'video'"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_reference_missing_key_raises(self, tmp_path):
        m = _minimal_manifest(references=[{"type": "string", "value": 1}])
        with pytest.raises(ValueError, match="key"):
            load_generation_manifest(_write(tmp_path / "m.yaml", m))

    def test_default_input_params_used(self, tmp_path):
        preset = _preset(metadata={
            "id": "text", "presetType": "children",
            "defaultInputParams": {"text": "default"},
        })
        m = _minimal_manifest(presets=[preset], sequence=[{"preset": "text"}])
        config = load_generation_manifest(_write(tmp_path / "m.yaml", m))
        assert config["sequence"][0]["inputData"] == {"text": "default"}

    def test_disabled_flag(self, tmp_path):
        m = _minimal_manifest(sequence=[{"preset": "text", "disabled": True}])
        config = load_generation_manifest(_write(tmp_path / "m.yaml", m))
        assert config["sequence"][0]["disabled"] is True
