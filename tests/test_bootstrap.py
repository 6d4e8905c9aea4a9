from pathlib import Path

import pytest

import educloud.config as config_module
from educloud.bootstrap import BootstrapError, Bootstrapper
from educloud.config import AppConfig


def test_bootstrapper_creates_storage_root(tmp_path: Path) -> None:
    storage_root = tmp_path / "nested" / "uploads"

    Bootstrapper(AppConfig(storage_root=storage_root)).initialize()

    assert storage_root.is_dir()
    assert list(storage_root.iterdir()) == []


def test_bootstrapper_raises_when_storage_directory_unwritable(
    tmp_path: Path, monkeypatch
) -> None:
    storage_root = tmp_path / "uploads"
    config = AppConfig(storage_root=storage_root)

    original_ensure = config_module._ensure_writable_directory

    def fake_ensure(path: Path) -> bool:
        if path.resolve() == storage_root.resolve():
            return False
        return original_ensure(path)

    monkeypatch.setattr(config_module, "_ensure_writable_directory", fake_ensure)

    with pytest.raises(BootstrapError) as excinfo:
        Bootstrapper(config).initialize()

    assert "storage" in str(excinfo.value).lower()
