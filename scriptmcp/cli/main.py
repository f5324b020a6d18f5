"""
scriptmcp CLI - Serve scripts or module functions as MCP tools.

Run ``scriptmcp --script-root ./scripts`` or ``scriptmcp --module my_tools``.
The MCP stream uses stdout, so everything else is printed to stderr.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from scriptmcp import __version__
from scriptmcp.errors import ScriptMcpError
from scriptmcp.tools.registry import ToolRegistry, build_registry
from scriptmcp.validation.config import LOG_LEVELS, Config

console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send all log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _print_tools(registry: ToolRegistry) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Parameters", style="white")
    table.add_column("Description", style="dim")

    for descriptor in registry.list_tools():
        params = []
        for name in descriptor.parameter_names:
            params.append(f"{name}*" if name in descriptor.required else name)
        table.add_row(descriptor.name, ", ".join(params) or "-", descriptor.description)

    console.print(table)
    console.print(f"[dim]{len(registry)} tools; * marks required parameters[/dim]")


@click.command()
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--script-root",
    "-s",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory of *.py scripts; each one becomes a tool",
)
@click.option("--module", "-m", help="Module whose exported functions become tools")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extra YAML config file",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level for stderr output",
)
@click.option("--name", help="Server name reported to MCP clients")
@click.option("--list", "list_only", is_flag=True, help="Print the tools and exit")
def cli(
    version: bool,
    script_root: Optional[Path],
    module: Optional[str],
    config_path: Optional[Path],
    log_level: Optional[str],
    name: Optional[str],
    list_only: bool,
) -> None:
    """
    scriptmcp - expose scripts and module functions as MCP tools.

    \b
    Examples:
        scriptmcp --script-root ./scripts        # serve every script
        scriptmcp --module ops_tools             # serve a module's functions
        scriptmcp -m ops_tools --list            # show the synthesized tools
    """
    if version:
        console.print(f"scriptmcp v{__version__}")
        return

    if script_root and module:
        raise click.UsageError("--script-root and --module are mutually exclusive.")

    try:
        config = Config.load(config_path)
        config.set_source(script_root=str(script_root) if script_root else None, module=module)
        config.override(name=name)
        if log_level:
            config.set_log_level(log_level)

        configure_logging(config.merged.logging.level)
        registry = build_registry(config)
    except ScriptMcpError as exc:
        err_console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    try:
        if list_only:
            _print_tools(registry)
            return

        from scriptmcp.server import run

        run(registry, config.merged.name)
    finally:
        registry.close()


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
