from pathlib import Path

import playfield.config.loader as loader


def _write_config(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


def test_shipped_config_matches_defaults():
    assert loader.get_distribution_defaults() == {
        "mode": "one-per-participant",
        "mismatch_handling": "auto",
        "allow_multiple_per_participant": True,
        "allow_empty_assignments": True,
    }
    assert loader.get_preview_settings() == {"mock_participant_count": 3}
    assert loader.get_display_settings() == {"bullet": "•", "json_indent": 2}


def test_defaults_when_missing(monkeypatch, tmp_path):
    monkeypatch.setattr(loader, "_CONFIG_PATH", tmp_path / "config.yaml")

    assert loader.load_config() == {}
    assert loader.get_distribution_defaults()["mode"] == "one-per-participant"
    assert loader.get_preview_settings()["mock_participant_count"] == 3
    assert loader.get_display_settings()["bullet"] == "•"


def test_distribution_coercion(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(
        config_path,
        "\n".join(
            [
                "distribution:",
                "  mode: \"Round-Robin\"",
                "  mismatch_handling: \"sometimes\"",
                "  allow_multiple_per_participant: \"no\"",
                "  allow_empty_assignments: \"yes\"",
            ]
        ),
    )
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    settings = loader.get_distribution_defaults()

    assert settings["mode"] == "round-robin"
    assert settings["mismatch_handling"] == "auto"
    assert settings["allow_multiple_per_participant"] is False
    assert settings["allow_empty_assignments"] is True


def test_preview_and_display_coercion(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    _write_config(
        config_path,
        "\n".join(
            [
                "preview:",
                "  mock_participant_count: \"0\"",
                "display:",
                "  bullet: \"   \"",
                "  json_indent: 40",
            ]
        ),
    )
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    assert loader.get_preview_settings()["mock_participant_count"] == 3
    assert loader.get_display_settings() == {"bullet": "•", "json_indent": 8}


def test_non_mapping_and_broken_yaml_fall_back(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    monkeypatch.setattr(loader, "_CONFIG_PATH", config_path)

    _write_config(config_path, "- just\n- a list\n")
    assert loader.load_config() == {}

    _write_config(config_path, "distribution: [unclosed\n")
    assert loader.load_config() == {}


def test_environment_override(monkeypatch, tmp_path):
    config_path = tmp_path / "override.yaml"
    _write_config(config_path, "preview:\n  mock_participant_count: 5\n")
    monkeypatch.setenv("PLAYFIELD_CONFIG_PATH", str(config_path))

    assert loader.get_preview_settings()["mock_participant_count"] == 5
