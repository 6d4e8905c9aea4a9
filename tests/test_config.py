import json
from pathlib import Path

import educloud.config as config_module
from educloud.config import AppConfig, load_config


def test_from_mapping_applies_defaults(tmp_path: Path) -> None:
    config = AppConfig.from_mapping({"storage_root": "uploads"}, base_path=tmp_path)

    assert config.storage_root == (tmp_path / "uploads").resolve()
    assert config.storage_root.is_dir()
    assert config.public_prefix == "/uploads"
    assert config.max_text_chars == 3000
    assert config.flashcard_count == 5
    assert config.api_key_env == "GEMINI_API_KEY"


def test_public_prefix_is_normalized(tmp_path: Path) -> None:
    config = AppConfig.from_mapping(
        {"storage_root": "uploads", "public_prefix": "files/"},
        base_path=tmp_path,
    )

    assert config.public_prefix == "/files"


def test_storage_root_falls_back_when_preferred_is_unusable(
    tmp_path: Path, monkeypatch
) -> None:
    home_dir = tmp_path / "home"
    monkeypatch.setattr(config_module.Path, "home", lambda: home_dir)

    preferred_storage = tmp_path / "uploads"
    preferred_storage.write_text("not a directory", encoding="utf-8")

    config = AppConfig.from_mapping({"storage_root": "uploads"}, base_path=tmp_path)

    expected_storage = (home_dir / ".educloud" / "uploads").resolve()
    assert config.storage_root == expected_storage
    assert expected_storage.is_dir()


def test_load_config_reads_json_file(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.json"
    config_file.write_text(
        json.dumps(
            {
                "storage_root": str(tmp_path / "store"),
                "gemini_model": "gemini-test",
                "flashcard_language": "inglés",
                "max_text_chars": 1200,
                "request_timeout_seconds": 12,
            }
        ),
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.storage_root == (tmp_path / "store").resolve()
    assert config.gemini_model == "gemini-test"
    assert config.flashcard_language == "inglés"
    assert config.max_text_chars == 1200
    assert config.request_timeout_seconds == 12.0
