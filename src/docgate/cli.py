# src/docgate/cli.py
"""docgate Command Line Interface.

Entry point for the docgate CLI tool.
"""

from __future__ import annotations

from pathlib import Path

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from docgate import __version__
from docgate.contracts import Document, InvalidConfigurationError, SubmissionResult
from docgate.core.config import DocgateSettings, load_settings

__all__ = ["app"]

EXIT_REJECTED = 2

app = typer.Typer(
    name="docgate",
    help="docgate: rate-limited, signed document submission.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"docgate version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """docgate: rate-limited, signed document submission."""
    from docgate.core.logging import configure_logging

    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(json_output=json_logs, level=log_level)
    ctx.obj = {"verbose": verbose, "json_logs": json_logs}

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _format_validation_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted validation error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]❌ {title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _pydantic_details(e: ValidationError) -> list[str]:
    return [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]


def _load_settings_or_exit(ctx: typer.Context, settings: str) -> DocgateSettings:
    """Load settings, rendering any failure as a panel and exiting 1.

    On success, logging is reconfigured from the settings' logging section.
    --verbose and --json-logs still take precedence.
    """
    settings_path = Path(settings).expanduser()

    try:
        config = load_settings(settings_path)
    except (YamlParserError, YamlScannerError) as e:
        _format_validation_error(
            title="YAML Syntax Error",
            message=f"Failed to parse {settings_path.name}",
            details=[str(e.problem)] if hasattr(e, "problem") else None,
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        # Must be before ValueError - ValidationError inherits from it
        _format_validation_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings_path.name}",
            details=_pydantic_details(e),
            hint="Check field names, types, and required values.",
        )
        raise typer.Exit(1) from None
    except ValueError as e:
        error_msg = str(e)
        if "environment variable" in error_msg.lower():
            import re

            match = re.search(r"'(\w+)'", error_msg)
            var_name = match.group(1) if match else "VARIABLE"
            _format_validation_error(
                title="Missing Environment Variable",
                message=error_msg,
                hint=f'Set the variable: export {var_name}="your-value"\n         Or use optional syntax: ${{{var_name}:-default}}',
            )
        else:
            _format_validation_error(title="Configuration Error", message=error_msg)
        raise typer.Exit(1) from None

    from docgate.core.logging import configure_logging_from_settings

    flags = ctx.obj or {}
    configure_logging_from_settings(
        config.logging,
        force_debug=flags.get("verbose", False),
        force_json=flags.get("json_logs", False),
    )
    return config


@app.command()
def validate(
    ctx: typer.Context,
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Validate configuration without submitting anything."""
    config = _load_settings_or_exit(ctx, settings)

    rate = config.rate_limit
    if rate.enabled:
        typer.echo(f"Rate limit: {rate.permits} submission(s) per {rate.window_seconds:g}s")
    else:
        typer.echo("Rate limit: disabled")
    typer.echo(f"Endpoint: {config.registry.endpoint}")
    typer.echo(f"Product group: {config.registry.product_group}")
    typer.secho("✅ Configuration valid", fg=typer.colors.GREEN)


def _report(result: SubmissionResult, attempt: int) -> None:
    prefix = f"[{attempt}] "
    if result.is_rejected:
        typer.secho(f"{prefix}Rejected: rate limit reached, not sent", fg=typer.colors.YELLOW)
    elif result.succeeded:
        typer.secho(f"{prefix}Submitted (HTTP {result.outcome.status_code})", fg=typer.colors.GREEN)  # type: ignore[union-attr]
    else:
        failure = result.outcome.failure  # type: ignore[union-attr]
        typer.secho(f"{prefix}Failed [{failure.kind}]: {failure.message}", fg=typer.colors.RED, err=True)  # type: ignore[union-attr]


@app.command()
def submit(
    ctx: typer.Context,
    document: Path = typer.Argument(
        ...,
        help="Path to document JSON file.",
    ),
    settings: str = typer.Option(
        ...,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    key_file: Path | None = typer.Option(
        None,
        "--key-file",
        "-k",
        help="File holding the RSA private key (base64 PKCS#8 DER or PEM).",
    ),
    signing_key: str | None = typer.Option(
        None,
        "--signing-key",
        envvar="DOCGATE_SIGNING_KEY",
        help="RSA private key material (prefer --key-file or the env var).",
        show_default=False,
    ),
    repeat: int = typer.Option(
        1,
        "--repeat",
        "-n",
        min=1,
        help="Submit the document N times (rejections are reported, not retried).",
    ),
) -> None:
    """Submit a document to the registry through the rate limiter."""
    from docgate.clients.http import RegistryHTTPClient
    from docgate.core.security.signing import load_signing_key
    from docgate.engine.gate import DocumentGate

    config = _load_settings_or_exit(ctx, settings)

    key_material: str | bytes
    if key_file is not None:
        try:
            key_material = load_signing_key(key_file)
        except FileNotFoundError as e:
            _format_validation_error(title="File Not Found", message=str(e))
            raise typer.Exit(1) from None
        except OSError as e:
            _format_validation_error(title="Cannot Read Signing Key", message=f"{key_file}: {e.strerror or e}")
            raise typer.Exit(1) from None
    elif signing_key:
        key_material = signing_key
    else:
        _format_validation_error(
            title="Missing Signing Key",
            message="No signing key provided.",
            hint="Pass --key-file PATH or set DOCGATE_SIGNING_KEY.",
        )
        raise typer.Exit(1)

    if not document.exists():
        _format_validation_error(title="File Not Found", message=f"Document file does not exist: {document}")
        raise typer.Exit(1)

    try:
        doc = Document.model_validate_json(document.read_bytes())
    except ValidationError as e:
        _format_validation_error(
            title="Invalid Document",
            message=f"Document {document.name} failed validation",
            details=_pydantic_details(e),
        )
        raise typer.Exit(1) from None

    try:
        transport = RegistryHTTPClient.from_settings(config.registry)
    except InvalidConfigurationError as e:
        _format_validation_error(
            title="Configuration Error",
            message=str(e),
            hint="Set registry.allow_insecure: true only for local mock servers.",
        )
        raise typer.Exit(1) from None

    results: list[SubmissionResult] = []
    with transport:
        try:
            gate = DocumentGate.from_settings(config, transport)
        except InvalidConfigurationError as e:
            _format_validation_error(
                title="Configuration Error",
                message=str(e),
                hint="Check rate_limit.window_seconds and rate_limit.permits.",
            )
            raise typer.Exit(1) from None

        for attempt in range(1, repeat + 1):
            result = gate.submit(doc, key_material)
            _report(result, attempt)
            results.append(result)

    if any(r.is_admitted and not r.succeeded for r in results):
        raise typer.Exit(1)
    if all(r.is_rejected for r in results):
        raise typer.Exit(EXIT_REJECTED)


if __name__ == "__main__":
    app()
