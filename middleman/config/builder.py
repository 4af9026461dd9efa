"""Build named dispatchers from a validated configuration.

Every configured component is registered as a lazy import target in a
:class:`ComponentRegistry`, and every pipeline is registered there too,
under its own name, once its dispatcher is built. All dispatchers share
one :class:`ContainerResolver` over that registry, so a pipeline can
reference another pipeline by name and nests like any other unit.

Nothing is imported at build time except ``response_type`` targets;
component imports happen when a dispatch first reaches them.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional

from middleman.config.loader import load_config
from middleman.config.schema import DispatcherSettings, MiddlemanConfig
from middleman.constants import CONVENTION_ACCUMULATOR
from middleman.dispatch.dispatcher import AccumulatorDispatcher, BaseDispatcher, Dispatcher
from middleman.display.logging_config import setup_logging_from_settings
from middleman.errors import ConfigurationError
from middleman.resolver.container import ContainerResolver
from middleman.resolver.registry import ComponentRegistry, load_object

logger = logging.getLogger(__name__)


def _load_response_type(pipeline: str, target: Optional[str]) -> Optional[type]:
    if target is None:
        return None
    try:
        response_type = load_object(target)
    except (ImportError, AttributeError, ValueError) as exc:
        raise ConfigurationError(
            f"Pipeline '{pipeline}': cannot import response_type '{target}': {exc}"
        ) from exc
    if not isinstance(response_type, type):
        raise ConfigurationError(
            f"Pipeline '{pipeline}': response_type '{target}' is not a class"
        )
    return response_type


def build_dispatcher(
    name: str,
    settings: DispatcherSettings,
    stack: list,
    resolver: ContainerResolver,
) -> BaseDispatcher:
    """Build one dispatcher for pipeline *name* with the effective *settings*."""
    if settings.convention == CONVENTION_ACCUMULATOR:
        return AccumulatorDispatcher(stack, resolver, memoize=settings.memoize)
    return Dispatcher(
        stack,
        resolver,
        response_type=_load_response_type(name, settings.response_type),
        memoize=settings.memoize,
    )


def build_dispatchers(
    config: MiddlemanConfig,
    registry: Optional[ComponentRegistry] = None,
) -> Dict[str, BaseDispatcher]:
    """Build every configured pipeline.

    Args:
        config: A validated configuration.
        registry: Optional registry holding components registered in code.
            Configured components are added to it (overriding entries of
            the same name) and so are the built pipelines.

    Returns:
        ``Dict[pipeline_name, dispatcher]``.
    """
    if registry is None:
        registry = ComponentRegistry()
    for name, target in config.components.items():
        registry.register_import(name, target)

    for name, pipeline in config.pipelines.items():
        for entry in pipeline.stack:
            if entry not in config.pipelines and not registry.has(entry):
                raise ConfigurationError(
                    f"Pipeline '{name}' references unknown component '{entry}'"
                )

    resolver = ContainerResolver(registry)
    dispatchers: Dict[str, BaseDispatcher] = {}

    for name in config.pipeline_order():
        pipeline = config.pipelines[name]
        settings = pipeline.effective(config.defaults)
        dispatcher = build_dispatcher(name, settings, list(pipeline.stack), resolver)
        registry.register(name, dispatcher)
        dispatchers[name] = dispatcher
        logger.debug(
            "Pipeline '%s' built (%s, %d unit(s), memoize=%s).",
            name,
            settings.convention,
            len(pipeline.stack),
            settings.memoize,
        )

    logger.info("%d pipeline(s) built.", len(dispatchers))
    return dispatchers


def load_dispatchers(
    cfg_fpath: str,
    registry: Optional[ComponentRegistry] = None,
    *,
    configure_logging: bool = False,
) -> Dict[str, BaseDispatcher]:
    """Load *cfg_fpath* and build its pipelines.

    The file's ``logging`` section is applied only when
    *configure_logging* is true; otherwise logging setup is left to the
    caller (see :func:`~middleman.display.logging_config.setup_logging`).
    """
    config = load_config(cfg_fpath)
    if configure_logging:
        setup_logging_from_settings(config.logging)
    return build_dispatchers(config, registry)
