import click
import uvicorn

from eksblueprint.cli.shared import get_settings
from eksblueprint.service.app import create_app


@click.command(help="Run the hello service with uvicorn")
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port to bind (defaults to APP_PORT, 3000)")
def serve(host: str, port: int):
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host,
        port=port or settings.app_port,
        log_config=None,
    )
