"""
Adapter Factory
Centralizes the logic for selecting the progress store and card catalog.
"""

import logging

from mnemora.application.config import AppConfig
from mnemora.application.study.service import StudyService
from mnemora.domain.progress.ports import CardCatalog, ProgressRepository
from mnemora.infrastructure.adapters.catalog import InMemoryCardCatalog, YamlCardCatalog
from mnemora.infrastructure.adapters.progress import (
    InMemoryProgressRepository,
    JsonProgressRepository,
)

logger = logging.getLogger(__name__)


def get_progress_repository(config: AppConfig) -> ProgressRepository:
    """
    Returns the appropriate ProgressRepository implementation based on config.
    """
    # 1. Manual selection
    if config.backend == "memory":
        return InMemoryProgressRepository(history_limit=config.history_limit)

    if config.backend == "json":
        return JsonProgressRepository(config.data_file, history_limit=config.history_limit)

    # 2. Auto selection: the JSON store whenever its directory can be created
    try:
        config.data_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot use {config.data_file} ({e}); progress will not be saved")
        return InMemoryProgressRepository(history_limit=config.history_limit)

    logger.debug(f"Backend: json ({config.data_file})")
    return JsonProgressRepository(config.data_file, history_limit=config.history_limit)


def get_catalog(config: AppConfig) -> CardCatalog:
    """
    Returns the card catalog named in config, or an empty one.
    """
    if config.catalog_file is None:
        logger.warning("No catalog_file configured; catalog is empty")
        return InMemoryCardCatalog()
    return YamlCardCatalog(config.catalog_file)


def get_study_service(config: AppConfig) -> StudyService:
    return StudyService(get_progress_repository(config), get_catalog(config))
