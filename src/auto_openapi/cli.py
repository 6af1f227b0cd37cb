"""CLI entry point for auto-openapi."""

import importlib
from pathlib import Path

import click

from auto_openapi.config import Config
from auto_openapi.plugin import AutoDoc
from auto_openapi.routing.tree import RouteNode


def _load_autodoc(app_ref: str, config_path: Path | None) -> AutoDoc:
    """Resolve ``module:attribute`` to an AutoDoc."""
    module_name, _, attr = app_ref.partition(":")
    if not module_name or not attr:
        raise click.BadParameter("expected 'module:attribute'", param_hint="APP_REF")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name}: {e}", param_hint="APP_REF")

    target = getattr(module, attr, None)
    if target is None:
        raise click.BadParameter(f"{module_name} has no attribute {attr}", param_hint="APP_REF")
    if callable(target) and not isinstance(target, (AutoDoc, RouteNode)):
        target = target()

    config = Config.from_yaml(config_path) if config_path else None
    if isinstance(target, AutoDoc):
        if config is not None:
            return AutoDoc(target.tree, config, docs=target.docs, store=target.store)
        return target
    if isinstance(target, RouteNode):
        return AutoDoc(target, config)
    raise click.BadParameter(f"{app_ref} is neither an AutoDoc nor a RouteTree", param_hint="APP_REF")


@click.group()
def main():
    """auto-openapi — infer OpenAPI documents from a route tree."""
    pass


@main.command()
@click.argument("app_ref")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Write the document to this file instead of stdout.")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "yaml"]), help="Output format.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
def generate(app_ref: str, output: Path | None, fmt: str, config_path: Path | None):
    """Generate the OpenAPI document for APP_REF (module:attribute)."""
    autodoc = _load_autodoc(app_ref, config_path)
    text = autodoc.to_yaml() if fmt == "yaml" else autodoc.to_json()

    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Document saved to {output}")


@main.command()
@click.argument("app_ref")
@click.argument("raw_path")
def match(app_ref: str, raw_path: str):
    """Print the registered pattern RAW_PATH resolves to."""
    autodoc = _load_autodoc(app_ref, None)
    pattern = autodoc.index.match_pattern(raw_path)
    if pattern is None:
        raise click.ClickException(f"No route matches {raw_path}")
    click.echo(pattern)
