"""TOML-based catalog configuration.

Loads ~/.shapecat/defaults.toml (global) and shapecat.toml (project),
merges them, and resolves the ``[catalog]``, ``[pricing]`` and ``[logging]``
tables into typed settings.

Example shapecat.toml:

    [catalog]
    compartment_id = "ocid1.compartment.oc1..aaaa"
    availability_domains = ["Uocm:PHX-AD-1", "Uocm:PHX-AD-2"]
    flex_cpu_constrain_list = "1,2,4,8"
    preemptible_shapes = ["VM.Standard"]

    [pricing.rates."VM.Standard.E4"]
    ocpu_hour = 0.025
    memory_gb_hour = 0.0015
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields
from datetime import timedelta
from pathlib import Path
from typing import Any

from shapecat.exceptions import ConfigurationError
from shapecat.logging import LogConfig

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".shapecat" / "defaults.toml"
PROJECT_CONFIG_NAME = "shapecat.toml"

DEFAULT_FLEX_CPU_CONSTRAIN_LIST = "1,2,4,8,16,32,48,64,96,128"
DEFAULT_FLEX_CPU_MEM_RATIOS = "2,4,8,16"
DEFAULT_PREEMPTIBLE_SHAPES = "VM.Standard,VM.Optimized3,VM.DenseIO"
DEFAULT_PREEMPTIBLE_EXCLUDE_SHAPES = "VM.Standard.E2.1.Micro"


def split_tokens(value: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
    """Normalize a comma-separated string or a list into stripped tokens.

    Tokens are not validated here; numeric parsing happens where they are
    consumed so that bad entries can be skipped individually.
    """
    if isinstance(value, str):
        parts: list[str] | tuple[str, ...] = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = [str(v) for v in value]
    else:
        raise ConfigurationError(f"Expected a string or a list, got {type(value).__name__}")
    return tuple(p.strip() for p in parts)


def _seconds(key: str, value: Any) -> timedelta:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"catalog.{key} must be a number, got {value!r}")
    return timedelta(seconds=value)


@dataclass(frozen=True, slots=True)
class CatalogOptions:
    """Settings for catalog discovery and offering generation.

    Attributes:
        compartment_id: Compartment whose shapes are listed.
        availability_domains: Fully-qualified domains, e.g. "Uocm:PHX-AD-1".
        flex_cpu_constrain_list: OCPU counts tried for flexible shapes.
        flex_cpu_mem_ratios: Memory-per-vCPU ratios (GB) tried for flexible shapes.
        preemptible_shapes: Name prefixes allowed to run preemptible.
        preemptible_exclude_shapes: Name prefixes never allowed to run preemptible.
        cache_ttl: How long a discovered catalog is reused.
        unavailable_offerings_ttl: How long an insufficient-capacity mark lasts.
        page_size: Items requested per listing call.
    """

    compartment_id: str
    availability_domains: tuple[str, ...]
    flex_cpu_constrain_list: tuple[str, ...] = split_tokens(DEFAULT_FLEX_CPU_CONSTRAIN_LIST)
    flex_cpu_mem_ratios: tuple[str, ...] = split_tokens(DEFAULT_FLEX_CPU_MEM_RATIOS)
    preemptible_shapes: tuple[str, ...] = split_tokens(DEFAULT_PREEMPTIBLE_SHAPES)
    preemptible_exclude_shapes: tuple[str, ...] = split_tokens(DEFAULT_PREEMPTIBLE_EXCLUDE_SHAPES)
    cache_ttl: timedelta = timedelta(minutes=5)
    unavailable_offerings_ttl: timedelta = timedelta(minutes=3)
    page_size: int = 50

    def __post_init__(self) -> None:
        if not self.compartment_id:
            raise ConfigurationError("catalog.compartment_id is required")
        if not self.availability_domains:
            raise ConfigurationError("catalog.availability_domains must not be empty")
        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise ConfigurationError(
                f"catalog.page_size must be an integer, got {self.page_size!r}"
            )
        if self.page_size <= 0:
            raise ConfigurationError(f"catalog.page_size must be positive, got {self.page_size}")
        if self.cache_ttl <= timedelta(0):
            raise ConfigurationError("catalog.cache_ttl_seconds must be positive")

    @classmethod
    def from_dict(cls, raw: RawConfig) -> CatalogOptions:
        raw = dict(raw)
        kwargs: dict[str, Any] = {}

        for key in (
            "availability_domains",
            "flex_cpu_constrain_list",
            "flex_cpu_mem_ratios",
            "preemptible_shapes",
            "preemptible_exclude_shapes",
        ):
            if key in raw:
                kwargs[key] = split_tokens(raw.pop(key))

        if "cache_ttl_seconds" in raw:
            kwargs["cache_ttl"] = _seconds("cache_ttl_seconds", raw.pop("cache_ttl_seconds"))
        if "unavailable_offerings_ttl_seconds" in raw:
            kwargs["unavailable_offerings_ttl"] = _seconds(
                "unavailable_offerings_ttl_seconds", raw.pop("unavailable_offerings_ttl_seconds")
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigurationError(f"Unknown catalog settings: {', '.join(unknown)}")

        kwargs.update(raw)
        if "compartment_id" not in kwargs:
            raise ConfigurationError("catalog.compartment_id is required")
        if "availability_domains" not in kwargs:
            raise ConfigurationError("catalog.availability_domains is required")
        kwargs["availability_domains"] = tuple(d for d in kwargs["availability_domains"] if d)
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class Settings:
    catalog: CatalogOptions
    pricing: RawConfig
    logging: LogConfig


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    path: Path | None = None,
) -> RawConfig:
    """Read and merge the global and project configuration files.

    An explicit ``path`` replaces the project file lookup.
    """
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = path or (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("catalog", {})
    merged.setdefault("pricing", {})
    merged.setdefault("logging", {})
    return merged


def resolve_settings(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    path: Path | None = None,
) -> Settings:
    config = load_config(project_dir=project_dir, global_path=global_path, path=path)

    try:
        log_config = LogConfig(**config["logging"])
    except TypeError as e:
        raise ConfigurationError(f"Invalid logging settings: {e}") from e

    return Settings(
        catalog=CatalogOptions.from_dict(config["catalog"]),
        pricing=dict(config["pricing"]),
        logging=log_config,
    )
