import logging
from pathlib import Path

from mnemora.application.config import log_level, resolve_config
from mnemora.application.factory import get_catalog, get_progress_repository
from mnemora.infrastructure.adapters.catalog import InMemoryCardCatalog, YamlCardCatalog
from mnemora.infrastructure.adapters.progress import (
    InMemoryProgressRepository,
    JsonProgressRepository,
)


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "auto"
    assert config.history_limit == 50
    assert config.catalog_file is None
    assert config.data_file == Path(mock_home) / ".config/mnemora/progress.json"


def test_env_overrides_file_and_cli_overrides_env(mock_home, monkeypatch):
    cfg_dir = mock_home / ".config/mnemora"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text('backend = "json"\nhistory_limit = 10\n')

    assert resolve_config().backend == "json"
    assert resolve_config().history_limit == 10

    monkeypatch.setenv("MNEMORA_BACKEND", "memory")
    assert resolve_config().backend == "memory"

    assert resolve_config({"backend": "json", "history_limit": None}).backend == "json"


def test_factory_selects_adapters(mock_home, tmp_path):
    catalog_file = tmp_path / "cards.yaml"
    catalog_file.write_text("- id: a\n  question: Q\n")

    memory = get_progress_repository(resolve_config({"backend": "memory"}))
    assert isinstance(memory, InMemoryProgressRepository)
    assert not isinstance(memory, JsonProgressRepository)
    repo = get_progress_repository(resolve_config({"data_file": tmp_path / "p.json"}))
    assert isinstance(repo, JsonProgressRepository)
    assert repo.path == tmp_path / "p.json"

    assert isinstance(get_catalog(resolve_config()), InMemoryCardCatalog)
    assert isinstance(
        get_catalog(resolve_config({"catalog_file": catalog_file})), YamlCardCatalog
    )


def test_verbose_sets_log_level(mock_home, monkeypatch):
    assert resolve_config().verbose == 0
    assert log_level(resolve_config().verbose) == logging.WARNING

    monkeypatch.setenv("MNEMORA_VERBOSE", "1")
    assert log_level(resolve_config().verbose) == logging.INFO
    assert log_level(resolve_config({"verbose": 3}).verbose) == logging.DEBUG
