"""Public configuration API for FacetQuery."""

from __future__ import annotations

from FacetQuery.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    check_cross_domain,
    load_config,
    load_config_with_defaults,
    parse_config_dict,
)
from FacetQuery.config.catalog import load_catalog, parse_field_type
from FacetQuery.config.runtime import RuntimeConfig
from FacetQuery.config.storage import StorageConfig
from FacetQuery.config.suggestions import SuggestionsConfig
from FacetQuery.config.validation import ValidationConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RuntimeConfig",
    "StorageConfig",
    "ValidationConfig",
    "SuggestionsConfig",
    "AppConfig",
    "load_catalog",
    "parse_field_type",
    "load_config",
    "load_config_with_defaults",
    "parse_config_dict",
    "check_cross_domain",
]
