# Infrastructure Catalog Adapters Package
from .memory import InMemoryCardCatalog
from .yaml_catalog import YamlCardCatalog

__all__ = ["InMemoryCardCatalog", "YamlCardCatalog"]
