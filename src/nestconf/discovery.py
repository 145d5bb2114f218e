"""Tree-building discovery that honors nested test configuration."""

from __future__ import annotations

import hashlib
import importlib.util
import inspect
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any

from nestconf.config import NestConfig, load_config
from nestconf.resolver import EnclosingConfigurationResolver
from nestconf.tags import TagData, effective_tag_data, get_tag_data, merge_tag_data
from nestconf.types import EnclosingConfiguration


logger = logging.getLogger(__name__)


@dataclass
class TestNode:
    """A node in the collected tree.

    Module and class nodes have children. Function nodes are leaves.
    Class nodes also carry the resolved enclosing configuration.
    """

    __test__ = False

    name: str
    full_name: str
    module_path: Path
    obj: Any = None
    children: list[TestNode] = field(default_factory=list)
    tags: set[str] = field(default_factory=set)
    skip_reason: str | None = None
    xfail_reason: str | None = None
    xfail_strict: bool = False

    # Class nodes only
    mode: EnclosingConfiguration | None = None
    inherited: bool = False
    declared_on: type | None = None

    @property
    def is_class(self) -> bool:
        return inspect.isclass(self.obj)

    @property
    def is_leaf(self) -> bool:
        return not self.children and not self.is_class

    def iter_leaves(self) -> list[TestNode]:
        """Return all leaf nodes below this node, depth first."""
        if self.is_leaf:
            return [self]
        leaves: list[TestNode] = []
        for child in self.children:
            leaves.extend(child.iter_leaves())
        return leaves

    def find(self, full_name: str) -> TestNode | None:
        """Return the node with ``full_name`` in this subtree, or None."""
        if self.full_name == full_name:
            return self
        for child in self.children:
            found = child.find(full_name)
            if found is not None:
                return found
        return None


def _load_module(path: Path) -> ModuleType:
    """Import a test file and register it in sys.modules.

    Registration is required: enclosing classes are found through the module
    a class was defined in.
    """
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:8]
    module_name = f"{path.stem}_{digest}"
    existing = sys.modules.get(module_name)
    if existing is not None:
        return existing

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f"Cannot load test module: {path}"
        raise ImportError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[module_name]
        raise
    return module


def _leaf(
    fn: Callable[..., Any],
    name: str,
    full_name: str,
    module_path: Path,
    tags: TagData,
) -> TestNode:
    return TestNode(
        name=name,
        full_name=full_name,
        module_path=module_path,
        obj=fn,
        tags=set(tags.tags),
        skip_reason=tags.skip_reason,
        xfail_reason=tags.xfail_reason,
        xfail_strict=tags.xfail_strict,
    )


def _collect_class(
    cls: type,
    full_name: str,
    module_path: Path,
    config: NestConfig,
    resolver: EnclosingConfigurationResolver,
) -> TestNode | None:
    """Build a class node with method leaves and nested class children."""
    resolution = resolver.resolve(cls)
    class_tags = effective_tag_data(cls, resolver)
    children: list[TestNode] = []

    for method_name, method in inspect.getmembers(cls, predicate=inspect.isfunction):
        if method_name.startswith(config.function_prefix):
            combined = merge_tag_data(class_tags, get_tag_data(method))
            children.append(
                _leaf(method, method_name, f"{full_name}::{method_name}", module_path, combined)
            )

    for inner_name, inner in inspect.getmembers(cls, predicate=inspect.isclass):
        if not inner_name.startswith(config.class_prefix):
            continue
        # Skip aliases and nested classes inherited from a superclass
        if resolver.enclosing_class(inner) is not cls:
            continue
        child = _collect_class(inner, f"{full_name}::{inner_name}", module_path, config, resolver)
        if child is not None:
            children.append(child)

    if not children:
        return None

    logger.debug(
        "Collected %s (mode=%s, inherited=%s)", full_name, resolution.mode.value, resolution.inherited
    )
    return TestNode(
        name=cls.__name__,
        full_name=full_name,
        module_path=module_path,
        obj=cls,
        children=children,
        tags=set(class_tags.tags),
        skip_reason=class_tags.skip_reason,
        xfail_reason=class_tags.xfail_reason,
        xfail_strict=class_tags.xfail_strict,
        mode=resolution.mode,
        inherited=resolution.inherited,
        declared_on=resolution.declared_on,
    )


def _collect_from_module(
    module: ModuleType,
    module_path: Path,
    config: NestConfig,
    resolver: EnclosingConfigurationResolver,
) -> list[TestNode]:
    """Collect test nodes from a module, creating class containers as needed."""
    nodes: list[TestNode] = []
    stem = module_path.stem

    for name, obj in inspect.getmembers(module):
        # Only objects defined in this module, not imported ones
        if getattr(obj, "__module__", None) != module.__name__:
            continue

        if name.startswith(config.function_prefix) and inspect.isfunction(obj):
            nodes.append(_leaf(obj, name, f"{stem}::{name}", module_path, get_tag_data(obj)))

        elif name.startswith(config.class_prefix) and inspect.isclass(obj):
            if resolver.enclosing_class(obj) is not None:
                continue
            class_node = _collect_class(obj, f"{stem}::{name}", module_path, config, resolver)
            if class_node is not None:
                nodes.append(class_node)

    return nodes


def _collect_file(
    path: Path,
    config: NestConfig,
    resolver: EnclosingConfigurationResolver,
) -> TestNode | None:
    module = _load_module(path)
    children = _collect_from_module(module, path, config, resolver)
    if not children:
        return None
    return TestNode(name=path.stem, full_name=path.stem, module_path=path, obj=module, children=children)


def collect(
    path: Path | str | None = None,
    *,
    config: NestConfig | None = None,
    resolver: EnclosingConfigurationResolver | None = None,
) -> list[TestNode]:
    """Discover tests and return root nodes (one per module).

    Args:
        path: File or directory to search. Defaults to the configured test paths.
        config: Settings; loaded from pyproject.toml when omitted.
        resolver: Resolver shared by the whole collection. A fresh one using the
            configured default mode is created when omitted.

    Returns:
        List of TestNode objects representing module-level containers.
    """
    config = config or load_config()
    resolver = resolver or EnclosingConfigurationResolver(
        default_mode=config.enclosing_configuration,
    )

    if path is None:
        nodes: list[TestNode] = []
        for configured in config.test_paths:
            nodes.extend(collect(configured, config=config, resolver=resolver))
        return nodes

    path = Path(path).resolve()
    nodes = []

    if path.is_file():
        if path.suffix == ".py":
            module_node = _collect_file(path, config, resolver)
            if module_node is not None:
                nodes.append(module_node)
    elif path.is_dir():
        for file_path in sorted(path.rglob(config.file_pattern)):
            module_node = _collect_file(file_path, config, resolver)
            if module_node is not None:
                nodes.append(module_node)
    else:
        logger.warning("Path does not exist: %s", path)

    return nodes


__all__ = ["TestNode", "collect"]
