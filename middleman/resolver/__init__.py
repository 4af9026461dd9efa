"""Component-name resolution for middleware stacks."""

from middleman.resolver.container import Container, ContainerResolver, as_resolver, is_container
from middleman.resolver.registry import ComponentRegistry, load_object

__all__ = [
    "ComponentRegistry",
    "Container",
    "ContainerResolver",
    "as_resolver",
    "is_container",
    "load_object",
]
