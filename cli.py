#!/usr/bin/env python3
"""Command-line interface for the ST25 NDEF tool."""

import sys
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from st25ndef.config import load_config
from st25ndef.main import Application
from st25ndef.ndef import Message, NDEFError, TextEncoding, TextRecord, UriRecord, decode, encode
from st25ndef.nfc.errors import TagSessionError
from st25ndef.nfc.tlv import parse_tlv
from st25ndef.services.config_record import ConfigParameters
from st25ndef.services.tag_service import TagServiceError, describe_error

# Initialize CLI app
app = typer.Typer(
    name="st25-ndef",
    help="NDEF reader and writer for ST25 (Type 5) NFC tags",
    add_completion=False,
)

console = Console()

CLI_ERRORS = (TagServiceError, TagSessionError, NDEFError, ValueError)

ImageOption = typer.Option(None, "--image", "-i", help="Tag memory image file (default: ST25_TAG_IMAGE)")
TimeoutOption = typer.Option(None, "--timeout", help="Timeout for waiting for tag (seconds)")


def get_app(image: Optional[Path] = None, timeout: Optional[float] = None) -> Application:
    """Get initialized application instance."""
    try:
        config = load_config(
            tag_image=str(image) if image else None,
            poll_timeout=timeout,
        )
        application = Application(config)
        application.initialize()
        return application
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)


def print_records(message: Message) -> None:
    """Display decoded records in a table."""
    table = Table(show_header=True)
    table.add_column("#", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("TNF", style="yellow")
    table.add_column("Content", style="white")

    for index, record in enumerate(message, start=1):
        table.add_row(str(index), type(record).__name__, record.tnf.name, record.describe())

    console.print(table)


def fail(e: Exception) -> None:
    console.print(f"\n[red]✗ {describe_error(e)}[/red]")
    raise typer.Exit(1)


@app.command("decode")
def decode_command(
    data: Optional[str] = typer.Argument(None, help="NDEF message as hex"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read raw bytes from a file"),
    tlv: bool = typer.Option(False, "--tlv", help="Input is a TLV area rather than a bare message"),
):
    """
    Decode an NDEF message.

    Accepts hex on the command line or raw bytes from a file.
    """
    try:
        if file is not None:
            raw = file.read_bytes()
        elif data is not None:
            raw = bytes.fromhex(data.replace(":", "").replace(" ", ""))
        else:
            console.print("[red]Error:[/red] Provide hex data or --file")
            raise typer.Exit(1)

        if tlv:
            raw = parse_tlv(raw)
            if raw is None:
                console.print("[red]✗ No NDEF TLV found[/red]")
                raise typer.Exit(1)

        message = decode(raw)
    except CLI_ERRORS as e:
        fail(e)

    console.print(f"\n[bold green]✓ {len(message)} record(s) decoded[/bold green]\n")
    print_records(message)


@app.command()
def encode_text(
    text: str = typer.Argument(..., help="Text to encode"),
    language: str = typer.Option("en", "--language", "-l", help="Language code"),
    utf16: bool = typer.Option(False, "--utf16", help="Encode text as UTF-16"),
):
    """Encode a single Text record message and print it as hex."""
    try:
        record = TextRecord(
            text=text,
            language=language,
            encoding=TextEncoding.UTF16 if utf16 else TextEncoding.UTF8,
        )
        console.print(encode([record]).hex(), soft_wrap=True)
    except CLI_ERRORS as e:
        fail(e)


@app.command()
def encode_uri(
    uri: str = typer.Argument(..., help="URI to encode"),
):
    """Encode a single URI record message and print it as hex."""
    try:
        console.print(encode([UriRecord(uri=uri)]).hex(), soft_wrap=True)
    except CLI_ERRORS as e:
        fail(e)


@app.command()
def read(
    image: Optional[Path] = ImageOption,
    timeout: Optional[float] = TimeoutOption,
):
    """
    Read NDEF records from a tag.

    Shows how many records were found and their content.
    """
    application = get_app(image, timeout)

    try:
        with console.status("[bold yellow]Reading tag..."):
            result = application.tag_service.read_records(timeout=application.config.poll_timeout)

        console.print(f"\n[bold green]✓ {result['status']}[/bold green]")
        console.print(f"Tag UID: [cyan]{result['tag_uid']}[/cyan]\n")
        console.print(Panel(result["output"].rstrip() or "No data yet.", title="Records", border_style="cyan"))
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()


def _write(application: Application, records) -> None:
    with console.status("[bold yellow]Writing tag..."):
        result = application.tag_service.write_records(records, timeout=application.config.poll_timeout)

    if not result.get("success"):
        console.print(f"[red]✗ {result.get('error')}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold green]✓ {result['status']}[/bold green]")
    console.print(f"Tag UID: [cyan]{result['tag_uid']}[/cyan] ({result['size']} bytes)\n")


@app.command()
def write_text(
    text: str = typer.Argument(..., help="Text to write"),
    image: Optional[Path] = ImageOption,
    timeout: Optional[float] = TimeoutOption,
):
    """Write a single Text record to a tag."""
    application = get_app(image, timeout)

    try:
        record = TextRecord(
            text=text,
            language=application.config.text_language,
            encoding=application.config.encoding,
        )
        _write(application, [record])
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()


@app.command()
def write_uri(
    uri: str = typer.Argument(..., help="URI to write"),
    image: Optional[Path] = ImageOption,
    timeout: Optional[float] = TimeoutOption,
):
    """Write a single URI record to a tag."""
    application = get_app(image, timeout)

    try:
        _write(application, [UriRecord(uri=uri)])
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()


@app.command()
def write_config(
    minpres: str = typer.Option("", "--minpres", help="Min pressure"),
    maxpres: str = typer.Option("", "--maxpres", help="Max pressure"),
    maxdiff: str = typer.Option("", "--maxdiff", help="Max diff"),
    minlocpres: str = typer.Option("", "--minlocpres", help="Min lock pressure"),
    locdur: str = typer.Option("", "--locdur", help="Lock duration"),
    image: Optional[Path] = ImageOption,
    timeout: Optional[float] = TimeoutOption,
):
    """
    Write configuration parameters to a tag.

    The parameters are stored as one Text record of key=value pairs.
    """
    try:
        params = ConfigParameters(
            minpres=minpres,
            maxpres=maxpres,
            maxdiff=maxdiff,
            minlocpres=minlocpres,
            locdur=locdur,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration value: {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]Writing configuration[/bold cyan]")
    console.print(f"[green]{params.to_text()}[/green]\n")

    application = get_app(image, timeout)

    try:
        _write(application, [params.to_record(application.config.text_language, application.config.encoding)])
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()


@app.command("format")
def format_tag(
    image: Optional[Path] = ImageOption,
    size: Optional[int] = typer.Option(None, "--size", help="Tag memory size in bytes"),
    read_only: bool = typer.Option(False, "--read-only", help="Deny write access in the capability container"),
    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """
    Format a tag image with an empty NDEF message.

    Removes all data from the tag.
    """
    if not confirm:
        confirm = typer.confirm("Are you sure you want to format the tag?")
        if not confirm:
            console.print("[yellow]Operation cancelled[/yellow]")
            raise typer.Exit(0)

    try:
        config = load_config(tag_image=str(image) if image else None, image_size=size)
        application = Application(config)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)

    try:
        application.format_tag(writable=not read_only)
        console.print(f"\n[bold green]✓ Tag formatted[/bold green]")
        console.print(f"Image: [cyan]{config.tag_image}[/cyan] ({config.image_size} bytes)\n")
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()


@app.command()
def info(
    image: Optional[Path] = ImageOption,
    timeout: Optional[float] = TimeoutOption,
):
    """
    Get detailed information about a tag.

    Displays UID, capacity, write access and NDEF content.
    """
    application = get_app(image, timeout)

    try:
        tag_info = application.tag_service.get_tag_info(timeout=application.config.poll_timeout)
    except CLI_ERRORS as e:
        fail(e)
    finally:
        application.cleanup()

    if not tag_info.get("present"):
        console.print("[red]✗ No tag detected[/red]")
        raise typer.Exit(1)

    table = Table(show_header=False, box=None)
    table.add_row("UID:", f"[cyan]{tag_info['uid']}[/cyan]")
    table.add_row("UID Length:", f"{tag_info['uid_length']} bytes")
    table.add_row("Writable:", f"{tag_info['writable']}")
    table.add_row("Capacity:", f"{tag_info['capacity']} bytes")

    ndef = tag_info["ndef"]
    color = "green" if ndef.get("valid") else "red"
    table.add_row("NDEF Valid:", f"[{color}]{ndef.get('valid')}[/{color}]")
    if "size" in ndef:
        table.add_row("NDEF Size:", f"{ndef['size']} bytes")
    if ndef.get("valid"):
        table.add_row("NDEF Records:", f"{ndef['records']} ({', '.join(ndef['types'])})")
    if ndef.get("error"):
        table.add_row("NDEF Error:", f"[red]{ndef['error']}[/red]")

    console.print(table)


@app.command()
def version():
    """Display version information."""
    from st25ndef import __version__

    console.print(Panel(
        f"[bold cyan]ST25 NDEF[/bold cyan]\n"
        f"Version: [green]{__version__}[/green]\n"
        f"NDEF reader and writer for Type 5 tags",
        title="Version Info",
        border_style="cyan",
    ))


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    sys.exit(main())
