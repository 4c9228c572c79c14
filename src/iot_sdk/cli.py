from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from iot_sdk.client.iot_client import IoTClient
from iot_sdk.client.validator import error_message, is_successful
from iot_sdk.config import Settings
from iot_sdk.device.manager import DEFAULT_RRPC_TIMEOUT_MS, DeviceManager, decode_rrpc_payload, extract_device_states
from iot_sdk.errors import IoTSdkError
from iot_sdk.logging_config import configure_logging
from iot_sdk.utils import format_timestamp, status_label

app = typer.Typer(name="iot", help="IoT cloud platform CLI")
console = Console()

# Global state set by the callback
_global_settings: Settings | None = None


@app.callback()
def main(
    base_url: Optional[str] = typer.Option(None, "--base-url", envvar="IOT_BASE_URL", help="Platform API base URL"),
    token: Optional[str] = typer.Option(None, "--token", envvar="IOT_TOKEN", help="Static API token"),
    app_id: Optional[str] = typer.Option(None, "--app-id", envvar="IOT_APP_ID", help="Application ID"),
    app_secret: Optional[str] = typer.Option(
        None, "--app-secret", envvar="IOT_APP_SECRET", help="Application secret"
    ),
    log_format: str = typer.Option("console", "--log-format", envvar="IOT_LOG_FORMAT", help="console or json"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
):
    """Manage devices on the IoT cloud platform."""
    global _global_settings
    overrides = {
        "base_url": base_url,
        "token": token,
        "app_id": app_id,
        "app_secret": app_secret,
        "log_format": log_format,
    }
    _global_settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(
        level="DEBUG" if verbose else _global_settings.log_level,
        log_format=_global_settings.log_format,
    )


def _get_client() -> IoTClient:
    return IoTClient.from_settings(_global_settings or Settings())


def _report(response: dict) -> None:
    console.print_json(data=response)
    if not is_successful(response):
        console.print(f"[red]Request failed:[/red] {error_message(response) or 'unknown error'}")
        raise typer.Exit(code=1)


def _fail(e: IoTSdkError) -> None:
    console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(code=1)


@app.command()
def token(refresh: bool = typer.Option(False, "--refresh", help="Exchange the app credentials again")):
    """Show the token the client authenticates with."""
    try:
        with _get_client() as client:
            if refresh:
                client.refresh_token()
            console.print(f"[green]Token:[/green] {client.current_token()}")
    except IoTSdkError as e:
        _fail(e)


@app.command()
def register(
    product_key: str = typer.Argument(help="Product key"),
    device_name: Optional[str] = typer.Option(None, "--device-name", help="Device name, generated if omitted"),
    nick_name: Optional[str] = typer.Option(None, "--nick-name", help="Display name"),
):
    """Register a new device under a product."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).register_device(product_key, device_name, nick_name)
    except IoTSdkError as e:
        _fail(e)
    _report(response)


@app.command()
def detail(
    device_name: Optional[str] = typer.Option(None, "--device-name", help="Device name"),
    device_id: Optional[str] = typer.Option(None, "--device-id", help="Device ID"),
):
    """Show details for a device."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).get_device_detail(device_name, device_id)
    except IoTSdkError as e:
        _fail(e)
    _report(response)


@app.command()
def status(
    device_name: Optional[str] = typer.Option(None, "--device-name", help="Device name"),
    device_id: Optional[str] = typer.Option(None, "--device-id", help="Device ID"),
):
    """Show the online status of a device."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).get_device_status(device_name, device_id)
    except IoTSdkError as e:
        _fail(e)
    _report(response)


@app.command("batch-status")
def batch_status(
    device_names: Optional[list[str]] = typer.Option(None, "--device-name", help="Device name (repeatable)"),
    device_ids: Optional[list[str]] = typer.Option(None, "--device-id", help="Device ID (repeatable)"),
):
    """Show the online status of up to 100 devices."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).batch_get_device_status(device_names, device_ids)
    except IoTSdkError as e:
        _fail(e)

    if not is_successful(response):
        _report(response)
        return

    states = extract_device_states(response.get("data"))
    if not states:
        console.print("[dim]No device states returned.[/dim]")
        return

    table = Table(title="Device Status")
    table.add_column("Name", style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Updated")

    for s in states:
        status_style = "green" if s.status == "ONLINE" else "red"
        table.add_row(
            s.device_name or "-",
            s.device_id or "-",
            f"[{status_style}]{status_label(s.status)}[/{status_style}]",
            format_timestamp(s.timestamp) if s.timestamp else "-",
        )
    console.print(table)


@app.command()
def rrpc(
    device_name: str = typer.Argument(help="Device name"),
    product_key: str = typer.Argument(help="Product key"),
    message: str = typer.Argument(help="Message text, sent base64-encoded"),
    timeout: int = typer.Option(DEFAULT_RRPC_TIMEOUT_MS, "--timeout", help="Device reply timeout (ms)"),
):
    """Send a synchronous RRPC message to a device and show its reply."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).send_rrpc_message(device_name, product_key, message, timeout)
    except IoTSdkError as e:
        _fail(e)
    _report(response)

    try:
        reply = decode_rrpc_payload(response)
    except ValueError:
        console.print("[yellow]Device reply is not valid base64 UTF-8.[/yellow]")
        return
    if reply is not None:
        console.print(f"[green]Device reply:[/green] {reply}")


@app.command()
def command(
    device_name: str = typer.Argument(help="Device name"),
    message: str = typer.Argument(help="Command text, sent base64-encoded"),
):
    """Send a custom downlink command to a device."""
    try:
        with _get_client() as client:
            response = DeviceManager(client).send_custom_command(device_name, message)
    except IoTSdkError as e:
        _fail(e)
    _report(response)


if __name__ == "__main__":
    app()
