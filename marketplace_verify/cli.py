"""marketplace-verify: pre-publish check for plugin marketplaces.

Validates a marketplace.json and every plugin it references, or a single
plugin directory with --plugin.

CLI Options:
- Normal mode: Warnings are displayed but don't cause failure (exit 0)
- Use --strict flag to treat warnings as errors (exit 1, for CI/CD)

Usage:
    marketplace-verify                       # ./.claude-plugin/marketplace.json
    marketplace-verify path/to/marketplace.json --strict
    marketplace-verify --plugin plugins/my-plugin

Exit codes:
    0 - All checks passed (warnings allowed in normal mode)
    1 - Validation errors found (or warnings in strict mode)
    2 - Usage error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from marketplace_verify import __version__
from marketplace_verify.config import VerifierConfig
from marketplace_verify.errors import ValidationError
from marketplace_verify.validator import (
    MarketplaceReport,
    PluginReport,
    validate_marketplace,
    validate_plugin,
)

console = Console()

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Route library logging to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-verify",
        description="Verify plugin marketplace structure and plugins",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Validation passed
  1 - Validation failed (errors found, or warnings in strict mode)

Examples:
  marketplace-verify                      # Normal mode (warnings allowed)
  marketplace-verify --strict             # Strict mode (warnings fail)
  marketplace-verify --plugin ./plugins/x # Single plugin
        """,
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="marketplace.json, or a directory containing .claude-plugin/marketplace.json",
    )
    parser.add_argument(
        "--plugin", action="store_true", help="Treat PATH as a single plugin directory"
    )
    parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (useful for CI/CD)"
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Entries without a 'strict' field are non-strict (failures become warnings)",
    )
    parser.add_argument(
        "--allow-outside-root",
        action="store_true",
        help="Allow relative plugin sources outside the marketplace root",
    )
    parser.add_argument(
        "--no-readme-check", action="store_true", help="Don't warn on missing README.md"
    )
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> VerifierConfig:
    return VerifierConfig().with_overrides(
        default_strict=False if args.lenient else None,
        allow_outside_root=True if args.allow_outside_root else None,
        warn_missing_readme=False if args.no_readme_check else None,
    )


def calculate_exit_code(
    report: MarketplaceReport | PluginReport, *, strict: bool = False
) -> tuple[int, int, int, int]:
    """Calculate exit code and totals based on errors and warnings.

    Args:
        report: Validation report
        strict: If True, warnings cause failure

    Returns:
        Tuple of (exit_code, total_errors, total_warnings, total_info)
    """
    if isinstance(report, MarketplaceReport):
        total_errors = len(report.all_errors())
        total_warnings = len(report.all_warnings())
        total_info = len(report.all_info())
    else:
        total_errors = len(report.errors)
        total_warnings = len(report.warnings)
        total_info = len(report.info)

    # Strict mode: warnings are failures (but info never fails)
    exit_code = 1 if strict and total_warnings > 0 or total_errors > 0 else 0

    return exit_code, total_errors, total_warnings, total_info


def _display_path(path: Path | None) -> str:
    if path is None:
        return "-"
    try:
        return str(path.resolve().relative_to(Path.cwd().resolve()))
    except ValueError:
        return str(path)


def _format_issue(issue: ValidationError) -> str:
    location = _display_path(issue.path) if issue.path is not None else ""
    parts = [p for p in (location, issue.field, issue.message) if p]
    return escape(": ".join(parts))


def _print_issues(
    label: str, issues: list[ValidationError], style: str, indent: str = "  "
) -> None:
    if not issues:
        return
    console.print(f"{indent}[cyan]{label}:[/cyan]")
    for issue in issues:
        console.print(f"{indent}  [{style}]• {_format_issue(issue)}[/{style}]")


def _count_cell(count: int, style: str) -> str:
    return f"[{style}]{count}[/{style}]" if count else "[green]0[/green]"


def print_marketplace_report(report: MarketplaceReport, *, strict: bool) -> None:
    name = report.manifest.name if report.manifest and report.manifest.name else "marketplace"

    if report.errors:
        console.print("[bold red]Marketplace Structure Errors:[/bold red]\n")
        for error in report.errors:
            console.print(f"  [red]• {_format_issue(error)}[/red]")
        console.print()

    if report.entries:
        table = Table(
            title=f"{escape(name)}: Plugin Validation Summary",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Plugin", style="cyan")
        table.add_column("Strict", justify="center")
        table.add_column("Agents", justify="right")
        table.add_column("Skills", justify="right")
        table.add_column("Commands", justify="right")
        table.add_column("Errors", justify="center")
        table.add_column("Warnings", justify="center")
        table.add_column("Status", justify="center")

        for entry in report.entries:
            plugin = entry.plugin
            if entry.external:
                status = "[dim]external[/dim]"
            else:
                status = "[green]✓[/green]" if entry.loadable else "[red]✗[/red]"
            table.add_row(
                escape(entry.name),
                "yes" if entry.strict else "no",
                str(len(plugin.agents)) if plugin else "-",
                str(len(plugin.skills)) if plugin else "-",
                str(len(plugin.commands)) if plugin else "-",
                _count_cell(len(entry.errors), "red"),
                _count_cell(len(entry.warnings), "yellow"),
                status,
            )

        console.print(table)
        console.print()

    for entry in report.entries:
        if entry.errors:
            console.print(f"\n[bold yellow]{escape(entry.name)} - Detailed Errors:[/bold yellow]")
            _print_issues("Errors", entry.errors, "red")

    warnings = [entry for entry in report.entries if entry.warnings]
    if warnings:
        warning_style = "red" if strict else "yellow"
        warning_label = "Warnings (treated as errors)" if strict else "Warnings"
        total = sum(len(entry.warnings) for entry in warnings)
        console.print(
            f"\n[bold {warning_style}]{warning_label} ({total}):[/bold {warning_style}]\n"
        )
        for entry in warnings:
            _print_issues(entry.name, entry.warnings, warning_style)

    info = [entry for entry in report.entries if entry.info]
    if info:
        console.print(f"\n[bold dim]Info ({len(report.all_info())}):[/bold dim]\n")
        for entry in info:
            console.print(f"  [bold]{escape(entry.name)}:[/bold]")
            for msg in entry.info:
                console.print(f"    [dim]• {escape(msg)}[/dim]")
        console.print()


def print_plugin_report(report: PluginReport, *, strict: bool) -> None:
    name = report.manifest.name if report.manifest else report.plugin_dir.name
    table = Table(title=f"{escape(name)}: Plugin Contents", header_style="bold cyan")
    table.add_column("Kind", style="cyan")
    table.add_column("Name")
    table.add_column("Model")
    table.add_column("Description")
    for kind, documents in (
        ("agent", report.agents),
        ("skill", report.skills),
        ("command", report.commands),
    ):
        for doc in documents:
            table.add_row(
                kind, escape(doc.name), escape(doc.model or "-"), escape(doc.description)
            )
    console.print(table)
    console.print()

    _print_issues("Errors", report.errors, "red")
    _print_issues("Warnings", report.warnings, "red" if strict else "yellow")
    for msg in report.info:
        console.print(f"  [dim]• {escape(msg)}[/dim]")


def print_summary(exit_code: int, total_errors: int, total_warnings: int, *, strict: bool) -> None:
    if exit_code != 0:
        # Warnings-only failure in strict mode
        if total_errors == 0 and strict and total_warnings > 0:
            message = (
                f"✗ Validation failed due to {total_warnings} warning(s) "
                "(warnings treated as errors in strict mode)"
            )
        else:
            message = f"✗ Validation failed with {total_errors} error(s)"
            if total_warnings > 0:
                message += f" and {total_warnings} warning(s)"
            if strict and total_warnings > 0:
                message += " (warnings treated as errors in strict mode)"

        console.print(
            Panel.fit(
                f"[bold red]{message}[/bold red]\nSee details above for specific issues.",
                border_style="red",
            )
        )
    else:
        message = "✅ All verification checks passed!"
        if total_warnings > 0:
            message += f"\n{total_warnings} warning(s) found but not failing (normal mode)"
        console.print(Panel.fit(f"[bold green]{message}[/bold green]", border_style="green"))


def main(argv: Sequence[str] | None = None) -> int:
    """Run all verification checks."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    config = config_from_args(args)
    path = Path(args.path)

    report: MarketplaceReport | PluginReport
    if args.plugin:
        if not path.is_dir():
            parser.error(f"plugin directory not found: {path}")
        report = validate_plugin(path, config)
    else:
        report = validate_marketplace(path, config)

    exit_code, total_errors, total_warnings, _total_info = calculate_exit_code(
        report, strict=args.strict
    )
    logger.debug("Exit code %d (%d errors, %d warnings)", exit_code, total_errors, total_warnings)

    if args.format == "json":
        payload = report.to_dict()
        payload["exit_code"] = exit_code
        print(json.dumps(payload, indent=2))
        return exit_code

    mode_text = "[bold cyan]Verifying " + ("plugin" if args.plugin else "marketplace structure")
    if args.strict:
        mode_text += " (strict mode)"
    mode_text += "...[/bold cyan]\n"
    console.print("\n" + mode_text)

    if isinstance(report, MarketplaceReport):
        print_marketplace_report(report, strict=args.strict)
    else:
        print_plugin_report(report, strict=args.strict)

    print_summary(exit_code, total_errors, total_warnings, strict=args.strict)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
