"""Application config orchestration and YAML loading entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from FacetQuery.config.catalog import check_catalog, load_catalog
from FacetQuery.config.runtime import RuntimeConfig, check_runtime, load_runtime
from FacetQuery.config.storage import StorageConfig, check_storage, load_storage
from FacetQuery.config.suggestions import SuggestionsConfig, check_suggestions, load_suggestions
from FacetQuery.config.validation import ValidationConfig, check_validation, load_validation
from FacetQuery.core.models import Catalog

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    storage: StorageConfig
    validation: ValidationConfig
    suggestions: SuggestionsConfig
    catalog: Catalog


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse normalized mapping into AppConfig."""
    runtime = load_runtime(raw)
    storage = load_storage(raw)
    validation = load_validation(raw)
    suggestions = load_suggestions(raw)
    catalog = load_catalog(raw)

    check_runtime(runtime)
    check_storage(storage)
    check_validation(validation)
    check_suggestions(suggestions)
    check_catalog(catalog)

    config = AppConfig(
        runtime=runtime,
        storage=storage,
        validation=validation,
        suggestions=suggestions,
        catalog=catalog,
    )
    check_cross_domain(config)
    return config


def load_config(path: Path) -> AppConfig:
    """Load YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(
    config_path: Path,
    default_path: Path = DEFAULT_CONFIG_PATH,
    *,
    defaults_text: str | None = None,
) -> AppConfig:
    """Load config by merging defaults and optional override.

    Args:
        config_path: Override config file.
        default_path: Defaults file, read unless ``defaults_text`` is given.
        defaults_text: Defaults as YAML text.

    Returns:
        Parsed application config.
    """
    if defaults_text is None:
        defaults_text = default_path.read_text(encoding="utf-8")
        if config_path == default_path:
            return parse_config_dict(parse_yaml(defaults_text))
    base = parse_yaml(defaults_text)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def check_cross_domain(config: AppConfig) -> None:
    """Validate cross-domain constraints."""
    for field_id in config.validation.counter_fields:
        field_type = config.catalog.get(field_id)
        if field_type is not None and field_type.value_kind.value != "number":
            raise ValueError(f"validation.counter_fields entry {field_id} must be a number field")


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; lists in the override replace base lists."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
