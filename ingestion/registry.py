"""
Source registry: the immutable catalog of government data providers.

A run walks the registry in declaration order, so repeated runs visit sources
in the same sequence and the politeness spacing between them is reproducible.
Adding a source means extending the catalog (ingestion/sources.py or a YAML
file), never mutating a registry at runtime.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from core.exceptions import ConfigurationError
from models.base import DataType, SourceTier
import logging

logger = logging.getLogger(__name__)


class SourceDescriptor(BaseModel):
    """
    One government data provider and its fetchable endpoints.

    Attributes:
        name: Human-readable label, unique within a registry
        root_address: Base network location (scheme + host, optionally a path prefix)
        endpoints: Data-type tag -> relative path
        tier: Level of government; drives jurisdiction defaults and role titles
        declared_data_types: Data types this source is expected to yield, in processing order
        politeness_interval_ms: Delay honoured after this source before the next one
        refresh_interval_hours: Advisory cadence for an external scheduler
    """

    name: str = Field(..., min_length=1, max_length=200)
    root_address: str
    endpoints: Mapping[DataType, str]
    tier: SourceTier
    declared_data_types: Tuple[DataType, ...]
    politeness_interval_ms: int = Field(1000, ge=0)
    refresh_interval_hours: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("root_address")
    @classmethod
    def check_root_address(cls, v):
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"root_address must be an http(s) URL, got {v!r}")
        try:
            # port is parsed lazily
            parsed.port
            httpx.URL(v)
        except (ValueError, httpx.InvalidURL) as e:
            raise ValueError(f"root_address is not a valid URL: {v!r} ({e})")
        return v.rstrip("/")

    @field_validator("endpoints", mode="after")
    @classmethod
    def freeze_endpoints(cls, v):
        return MappingProxyType(dict(v))

    @model_validator(mode="after")
    def check_endpoints_cover_declared_types(self):
        missing = [dt.value for dt in self.declared_data_types if dt not in self.endpoints]
        if missing:
            raise ValueError(f"no endpoint for declared data types: {', '.join(missing)}")
        return self

    @property
    def host(self) -> str:
        return (urlparse(self.root_address).hostname or "").lower()

    def endpoint_url(self, data_type: DataType) -> str:
        """Absolute address for one data type; the root's own path prefix is kept"""
        try:
            path = self.endpoints[data_type]
        except KeyError:
            raise ConfigurationError(
                f"Source {self.name!r} has no endpoint for {DataType(data_type).value}",
                context={"source_name": self.name, "data_type": str(data_type)}
            )
        return f"{self.root_address}/{path.lstrip('/')}"


def parse_filter_value(enum_cls, value, field: str):
    """Turn a filter value into its enum, or fail the run up front"""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"Unknown {field} {value!r} (expected one of: {allowed})",
            context={field: value}
        )


class SourceRegistry:
    """Ordered, read-only collection of SourceDescriptor values"""

    def __init__(self, descriptors: Iterable[SourceDescriptor]):
        self._sources: Tuple[SourceDescriptor, ...] = tuple(descriptors)

        seen = set()
        for source in self._sources:
            if source.name in seen:
                raise ConfigurationError(
                    f"Duplicate source name in registry: {source.name!r}",
                    context={"source_name": source.name}
                )
            seen.add(source.name)

    def __len__(self) -> int:
        return len(self._sources)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._sources)

    def get(self, name: str) -> Optional[SourceDescriptor]:
        for source in self._sources:
            if source.name == name:
                return source
        return None

    def list_sources(
        self,
        tier: Union[SourceTier, str, None] = None,
        data_type: Union[DataType, str, None] = None
    ) -> List[SourceDescriptor]:
        """
        Sources matching the filter, in declaration order.

        Raises:
            ConfigurationError: If tier or data_type is not a known value
        """
        tier = parse_filter_value(SourceTier, tier, "tier")
        data_type = parse_filter_value(DataType, data_type, "data_type")

        return [
            source for source in self._sources
            if (tier is None or source.tier == tier)
            and (data_type is None or data_type in source.declared_data_types)
        ]

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_dicts(cls, entries: Iterable[Dict[str, Any]]) -> "SourceRegistry":
        descriptors = []
        for index, entry in enumerate(entries):
            try:
                descriptors.append(SourceDescriptor(**entry))
            except (ValidationError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid source entry #{index + 1}",
                    context={"source_name": entry.get("name") if isinstance(entry, dict) else None},
                    original_exception=e
                )
        return cls(descriptors)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SourceRegistry":
        """
        Load a catalog file of the form:

            sources:
              - name: Ontario Legislative Assembly
                root_address: https://www.ola.org
                tier: provincial
                endpoints: {politicians: /en/members/current}
                declared_data_types: [politicians]
                politeness_interval_ms: 1000
        """
        try:
            with open(path, "r") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Could not read source catalog {path}",
                context={"path": str(path)},
                original_exception=e
            )

        entries = config.get("sources") if isinstance(config, dict) else None
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"Source catalog {path} has no 'sources' list",
                context={"path": str(path)}
            )

        registry = cls.from_dicts(entries)
        logger.info(f"Loaded {len(registry)} sources from {path}")
        return registry

    @classmethod
    def default(cls) -> "SourceRegistry":
        """Registry over the built-in Canadian government catalog"""
        from ingestion.sources import DEFAULT_SOURCES
        return cls(DEFAULT_SOURCES)
