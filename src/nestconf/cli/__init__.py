"""CLI module for nestconf."""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.tree import Tree

from nestconf.config import NestConfig, load_config
from nestconf.discovery import TestNode, collect
from nestconf.resolver import EnclosingConfigurationResolver, Resolution


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for nestconf CLI."""
    config = load_config()
    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))

    _configure_logging(getattr(args, "verbose", 0))

    if args.command == "show":
        raise SystemExit(_run_show(args, config))

    if args.command == "explain":
        raise SystemExit(_run_explain(args, config))

    parser.print_help()
    raise SystemExit(0)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nestconf", description="Inspect nested test configuration"
    )
    subparsers = parser.add_subparsers(dest="command")

    show_parser = subparsers.add_parser(
        "show", help="Show collected test classes with their enclosing configuration"
    )
    show_parser.add_argument("paths", nargs="*", help="Test files or directories")

    explain_parser = subparsers.add_parser(
        "explain", help="Explain how a single class resolves its enclosing configuration"
    )
    explain_parser.add_argument("target", help="Class import path, e.g. 'pkg.module:Outer.Inner'")

    for p in subparsers.choices.values():
        p.add_argument("-v", "--verbose", action="count", default=0, help="Increase CLI output")
        p.add_argument(
            "--mode",
            choices=["inherit", "override"],
            help="Default mode for classes without a declaration",
        )

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_config(args: argparse.Namespace, config: NestConfig) -> NestConfig:
    if args.mode:
        return NestConfig.model_validate(
            {**config.model_dump(), "enclosing_configuration": args.mode}
        )
    return config


def _make_resolver(config: NestConfig) -> EnclosingConfigurationResolver:
    return EnclosingConfigurationResolver(default_mode=config.enclosing_configuration)


def _format_resolution(resolution: Resolution) -> str:
    style = "green" if resolution.inherited else "yellow"
    source = (
        f"declared on {resolution.declared_on.__qualname__}"
        if resolution.declared_on is not None
        else "default"
    )
    inherits = "inherits" if resolution.inherited else "does not inherit"
    return f"[{style}]{resolution.mode.value}[/{style}] ({source}, {inherits})"


def _add_children(branch: Tree, node: TestNode) -> None:
    for child in node.children:
        if not child.is_class:
            continue
        label = f"[bold]{child.name}[/bold] {_format_node(child)}"
        sub = branch.add(label)
        _add_children(sub, child)


def _format_node(node: TestNode) -> str:
    resolution = Resolution(
        mode=node.mode,  # type: ignore[arg-type]
        inherited=node.inherited,
        declared_on=node.declared_on,
    )
    text = _format_resolution(resolution)
    if node.tags:
        text += f" tags={sorted(node.tags)}"
    return text


def _run_show(args: argparse.Namespace, config: NestConfig) -> int:
    console = Console()
    config = _resolve_config(args, config)
    resolver = _make_resolver(config)
    paths = args.paths or config.test_paths

    nodes: list[TestNode] = []
    try:
        for path in paths:
            nodes.extend(collect(path, config=config, resolver=resolver))
    except Exception as exc:
        console.print(f"[red]Failed to load tests: {exc}[/red]")
        return 2

    if not nodes:
        console.print("[yellow]No test classes found.[/yellow]")
        return 1

    for module_node in nodes:
        tree = Tree(f"[bold cyan]{module_node.name}[/bold cyan]")
        _add_children(tree, module_node)
        console.print(tree)
    return 0


def _import_class(import_path: str) -> type:
    """Import a class from an import string.

    Supports formats:
        - "module.path:Outer.Inner"
        - "module.path.ClassName"
    """
    if ":" in import_path:
        module_path, qualname = import_path.split(":", 1)
    elif "." in import_path:
        module_path, qualname = import_path.rsplit(".", 1)
    else:
        msg = f"Invalid import path: {import_path}"
        raise ValueError(msg)

    obj: object = importlib.import_module(module_path)
    for part in qualname.split("."):
        obj = getattr(obj, part)

    if not isinstance(obj, type):
        msg = f"{import_path} is not a class"
        raise TypeError(msg)
    return obj


def _run_explain(args: argparse.Namespace, config: NestConfig) -> int:
    console = Console()
    config = _resolve_config(args, config)
    resolver = _make_resolver(config)

    try:
        cls = _import_class(args.target)
    except (ImportError, AttributeError, ValueError, TypeError) as exc:
        console.print(f"[red]Cannot load {args.target}: {exc}[/red]")
        return 2

    current: type | None = cls
    while current is not None:
        resolution = resolver.resolve(current)
        console.print(f"{current.__qualname__}: {_format_resolution(resolution)}")
        current = resolution.enclosing
    return 0


__all__ = ["main"]
