"""ssr-guard CLI - find browser-only globals that break server-side rendering."""

import json
from pathlib import Path
from typing import Iterator, List, Optional

import click
import typer
from rich.markup import escape
from rich.table import Table

from ssrguard.analyzer.checker import RULE_NAME, Finding, SSRGlobalsChecker
from ssrguard.analyzer.options import OptionsError, RuleOptions, load_options
from ssrguard.analyzer.parser import UnparsableSourceError, is_markup_file
from ssrguard.config import SEVERITIES, __version__, get_config
from ssrguard.utils.safe_console import SafeConsole

app = typer.Typer(
    name="ssrguard",
    help="Find browser-only globals used where server-side rendering would execute them",
    add_completion=False
)
console = SafeConsole(highlight=False)
err_console = SafeConsole(stderr=True, highlight=False)

# Directories never searched when a directory is given
EXCLUDED_DIRS = {
    'node_modules', '.git', '.hg', '.svn', 'dist', 'build', 'out', 'coverage',
    '.next', '.nuxt', '.turbo', '.cache', 'venv', '.venv', '__pycache__',
}

EXIT_FINDINGS = 1
EXIT_USAGE = 2


def fail(message: str) -> None:
    """Print an error and abort with the usage exit code."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(EXIT_USAGE)


def resolve_options(config_path: Optional[Path], allow_global: Optional[List[str]],
                    allow_hook: Optional[List[str]], allow_function: Optional[List[str]],
                    no_condition_check: bool) -> RuleOptions:
    """Build the effective options: defaults < options file < CLI flags.

    --allow-global extends the file's list; --allow-hook and
    --allow-function replace theirs, as the rule option would.

    Raises:
        OptionsError: If the options file or the merged options are invalid
    """
    if config_path is None:
        config_path = get_config().options_path

    options = load_options(config_path) if config_path else RuleOptions()

    overrides = {}
    if allow_global:
        overrides['allowed_globals'] = options.allowed_globals + tuple(allow_global)
    if allow_hook:
        overrides['allowed_hooks'] = tuple(allow_hook)
    if allow_function:
        overrides['allowed_functions'] = tuple(allow_function)
    if no_condition_check:
        overrides['condition_check'] = False

    return options.merged(**overrides)


def discover_files(paths: List[Path], verbose: bool = False) -> Iterator[Path]:
    """Expand paths into the .jsx/.tsx files to check, in stable order.

    Explicit files with another extension are skipped without being read.
    """
    for path in paths:
        if path.is_dir():
            for file_path in sorted(path.rglob('*')):
                relative_parts = file_path.relative_to(path).parts
                if any(part in EXCLUDED_DIRS for part in relative_parts):
                    continue
                if file_path.is_file() and is_markup_file(file_path):
                    yield file_path
        elif is_markup_file(path):
            yield path
        elif verbose:
            err_console.print(f"[dim]→ Skipping {escape(str(path))} (not a .jsx/.tsx file)[/dim]")


def print_findings_table(findings: List[Finding]) -> None:
    """Render findings as a rich table followed by the fix hint."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Line:Col", justify="right", style="yellow")
    table.add_column("Global", style="bold red")
    table.add_column("Problem")

    for finding in findings:
        table.add_row(
            escape(finding.file_path),
            f"{finding.line}:{finding.column}",
            finding.name,
            "not allowed in a server-side context",
        )

    console.print(table)
    console.print(
        "[dim]Wrap browser-only code in a client-side safe context, such as useEffect or an "
        "event handler, or mark it with a `// @client` comment on the line above.[/dim]"
    )


def version_callback(value: bool):
    if value:
        typer.echo(f"ssrguard {__version__}")
        raise typer.Exit()


@app.command()
def check(
    paths: Optional[List[Path]] = typer.Argument(None, help="Files or directories to check (default: .)"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON file with rule options"),
    allow_global: Optional[List[str]] = typer.Option(None, "--allow-global", "-g", help="Browser global to allow (repeatable)"),
    allow_hook: Optional[List[str]] = typer.Option(None, "--allow-hook", help="Hook whose callback is client-only (repeatable, replaces defaults)"),
    allow_function: Optional[List[str]] = typer.Option(None, "--allow-function", help="Function whose callback is deferred (repeatable, replaces defaults)"),
    no_condition_check: bool = typer.Option(False, "--no-condition-check", help="Do not accept `if (window !== undefined)` guards"),
    output_format: str = typer.Option("text", "--format", "-f", click_type=click.Choice(["text", "json"]), help="Output format"),
    severity: Optional[str] = typer.Option(None, "--severity", click_type=click.Choice(SEVERITIES), help="error (exit 1 on findings), warn, or off"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every checked and skipped file"),
):
    """Check .jsx/.tsx files for browser-only globals outside client-safe contexts."""
    try:
        if severity is None:
            severity = get_config().severity
        options = resolve_options(config_path, allow_global, allow_hook, allow_function, no_condition_check)
    except ValueError as e:
        # OptionsError, or an invalid SSRGUARD_SEVERITY
        fail(str(e))

    if severity == "off":
        if verbose:
            err_console.print(f"[dim]{RULE_NAME} is off[/dim]")
        if output_format == "json":
            typer.echo("[]")
        return

    paths = paths or [Path(".")]
    for path in paths:
        if not path.exists():
            fail(f"Path does not exist: {path}")

    checker = SSRGlobalsChecker(options)
    findings: List[Finding] = []
    checked = 0
    had_errors = False

    for file_path in discover_files(paths, verbose=verbose):
        if verbose:
            err_console.print(f"[dim]• Checking {escape(str(file_path))}[/dim]")
        try:
            findings.extend(checker.check_file(file_path))
        except UnparsableSourceError as e:
            err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            had_errors = True
        except OSError as e:
            err_console.print(f"[bold red]Error:[/bold red] Cannot read {escape(str(file_path))}: {escape(str(e))}")
            had_errors = True
        checked += 1

    if output_format == "json":
        typer.echo(json.dumps([finding.to_dict() for finding in findings], indent=2))
    elif findings:
        print_findings_table(findings)
        files_with_findings = len({finding.file_path for finding in findings})
        style = "bold red" if severity == "error" else "bold yellow"
        console.print(f"\n[{style}]✗ {len(findings)} problem(s) in {files_with_findings} file(s)[/{style}]")
    else:
        console.print(f"[green]✓ No browser-only globals found in {checked} file(s)[/green]")

    if had_errors:
        raise typer.Exit(EXIT_USAGE)
    if findings and severity == "error":
        raise typer.Exit(EXIT_FINDINGS)


@app.command("globals")
def list_globals(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON file with rule options"),
    allow_global: Optional[List[str]] = typer.Option(None, "--allow-global", "-g", help="Browser global to allow (repeatable)"),
):
    """List the browser-only globals the rule reports."""
    try:
        options = resolve_options(config_path, allow_global, None, None, False)
    except OptionsError as e:
        fail(str(e))

    for name in sorted(SSRGlobalsChecker(options).restricted):
        typer.echo(name)


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=version_callback, is_eager=True, help="Show version and exit"),
):
    """ssr-guard - browser-only globals checker for server-rendered JSX/TSX."""
    pass


if __name__ == "__main__":
    app()
