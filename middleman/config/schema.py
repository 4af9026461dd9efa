"""Pydantic configuration models for middleman.

Defines the validated config structure using the versioned v1 format.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Set

from pydantic import BaseModel, Field, field_validator, model_validator

from middleman.constants import (
    CONFIG_VERSION,
    CONVENTION_REQUEST,
    DEFAULT_LOG_LEVEL,
    LOG_LEVELS,
)

Convention = Literal["request", "accumulator"]


def _check_import_target(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    module_name, sep, attr = v.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"'{v}' must have the form 'package.module:attribute'")
    return v


# ── Logging ──────────────────────────────────────────────────────────────


class LoggingSettings(BaseModel):
    """Package logging configuration."""

    level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level for the middleman logger.")
    file: Optional[str] = Field(
        default=None,
        description="Optional log file path. Logs go to stderr when unset.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, v: str) -> str:
        level = str(v).strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level '{v}'. Expected one of: {', '.join(LOG_LEVELS)}")
        return level


# ── Dispatchers ──────────────────────────────────────────────────────────


class DispatcherSettings(BaseModel):
    """Settings applied to every pipeline unless overridden."""

    convention: Convention = Field(
        default=CONVENTION_REQUEST,
        description="'request' (units return a response) or 'accumulator'.",
    )
    memoize: bool = Field(
        default=False,
        description="Resolve each component at most once per dispatcher instance.",
    )
    response_type: Optional[str] = Field(
        default=None,
        description="Import target ('pkg.mod:Type') results must be instances of.",
    )

    @field_validator("response_type")
    @classmethod
    def _validate_response_type(cls, v: Optional[str]) -> Optional[str]:
        return _check_import_target(v)


class PipelineConfig(BaseModel):
    """One named pipeline: an ordered stack plus optional overrides."""

    stack: List[str] = Field(
        default_factory=list,
        description="Component or pipeline names, in execution order.",
    )
    convention: Optional[Convention] = None
    memoize: Optional[bool] = None
    response_type: Optional[str] = None

    @field_validator("response_type")
    @classmethod
    def _validate_response_type(cls, v: Optional[str]) -> Optional[str]:
        return _check_import_target(v)

    def effective(self, defaults: DispatcherSettings) -> DispatcherSettings:
        """Merge this pipeline's overrides over *defaults*."""
        overrides = {
            key: value
            for key, value in (
                ("convention", self.convention),
                ("memoize", self.memoize),
                ("response_type", self.response_type),
            )
            if value is not None
        }
        return defaults.model_copy(update=overrides)


# ── Top level ────────────────────────────────────────────────────────────


class MiddlemanConfig(BaseModel):
    """Top-level validated configuration.

    Supports version ``"1"`` format::

        {
            "version": "1",
            "logging": { ... },
            "defaults": { ... },
            "components": {"auth": "myapp.middleware:Auth"},
            "pipelines": {"api": {"stack": ["auth", "router"]}}
        }
    """

    version: str = CONFIG_VERSION
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    defaults: DispatcherSettings = Field(default_factory=DispatcherSettings)
    components: Dict[str, str] = Field(
        default_factory=dict,
        description="Component name → import target ('pkg.mod:attr').",
    )
    pipelines: Dict[str, PipelineConfig] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _validate_version(cls, v: object) -> str:
        if str(v) != CONFIG_VERSION:
            raise ValueError(f"Unsupported config version '{v}' (expected '{CONFIG_VERSION}')")
        return str(v)

    @field_validator("components", "pipelines")
    @classmethod
    def _validate_names(cls, v: Dict[str, object]) -> Dict[str, object]:
        for name in v:
            stripped = name.strip()
            if not stripped:
                raise ValueError("Names must be non-empty strings")
            if stripped != name:
                raise ValueError(f"Name '{name}' has leading/trailing whitespace")
        return v

    @field_validator("components")
    @classmethod
    def _validate_targets(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {name: _check_import_target(target) for name, target in v.items()}

    @model_validator(mode="after")
    def _validate_pipelines(self) -> "MiddlemanConfig":
        shared = set(self.components) & set(self.pipelines)
        if shared:
            raise ValueError(f"Names used for both a component and a pipeline: {sorted(shared)}")

        for name, pipeline in self.pipelines.items():
            settings = pipeline.effective(self.defaults)
            if not pipeline.stack and settings.convention == CONVENTION_REQUEST:
                raise ValueError(f"Pipeline '{name}' has an empty stack")
            for entry in pipeline.stack:
                if entry in self.pipelines:
                    inner = self.pipelines[entry].effective(self.defaults)
                    if inner.convention != settings.convention:
                        raise ValueError(
                            f"Pipeline '{name}' ({settings.convention}) cannot nest "
                            f"pipeline '{entry}' ({inner.convention})"
                        )

        self.pipeline_order()
        return self

    def pipeline_order(self) -> List[str]:
        """Return pipeline names so that nested pipelines come first.

        Raises :class:`ValueError` if pipelines nest cyclically.
        """
        deps = {
            name: {entry for entry in p.stack if entry in self.pipelines}
            for name, p in self.pipelines.items()
        }
        remaining = set(deps)
        completed: Set[str] = set()
        order: List[str] = []

        while remaining:
            ready = sorted(name for name in remaining if deps[name] <= completed)
            if not ready:
                raise ValueError(f"Cycle detected between pipelines: {sorted(remaining)}")
            order.extend(ready)
            completed.update(ready)
            remaining -= set(ready)

        return order
