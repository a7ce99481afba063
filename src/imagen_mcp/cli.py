import typer
from typing_extensions import Annotated
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from pathlib import Path
import asyncio
import logging

from mcp.shared.exceptions import McpError

from imagen_mcp import __version__
from imagen_mcp.config import ConfigurationError, Settings, resolve_api_key, settings
from imagen_mcp.core import ImageGenerationPipeline
from imagen_mcp.errors import error_kind
from imagen_mcp.models import GENERATE_IMAGE_TOOL
from imagen_mcp.providers.gemini_provider import GeminiImagenProvider
from imagen_mcp.server import ImagenServer

app = typer.Typer(
    name="imagen-mcp",
    help="🎨 An MCP server that generates images with Google Gemini Imagen.",
    add_completion=False,
)
console = Console()
# stdout carries protocol frames while serving, so diagnostics go to stderr.
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def build_pipeline(
    api_key: str, output_dir: str, config: Settings = settings
) -> ImageGenerationPipeline:
    provider = GeminiImagenProvider(
        api_key=api_key, model=config.model, base_url=config.base_url
    )
    return ImageGenerationPipeline(provider, Path(output_dir))


def version_callback(value: bool):
    if value:
        console.print(f"imagen-mcp Version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
):
    pass


@app.command()
def serve(
    api_key: Annotated[
        str,
        typer.Option(
            "--api-key",
            help="Gemini API key. Falls back to GEMINI_API_KEY.",
            show_default=False,
        ),
    ] = None,
    output_dir: Annotated[
        str, typer.Option("--output-dir", "-o", help="Directory for generated images.")
    ] = settings.output_dir,
    log_level: Annotated[
        str, typer.Option("--log-level", help="Diagnostic log level.")
    ] = settings.log_level,
):
    """Run the MCP server on stdio."""
    configure_logging(log_level)
    try:
        key = resolve_api_key(api_key)
    except ConfigurationError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    server = ImagenServer(build_pipeline(key, output_dir))
    asyncio.run(server.run())


@app.command(name="list-tools")
def list_tools_command():
    schema = GENERATE_IMAGE_TOOL.inputSchema
    required = set(schema.get("required", []))
    table = Table(title=f"⚙️ Tool: {GENERATE_IMAGE_TOOL.name}")
    table.add_column("Parameter", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Allowed", style="green")
    table.add_column("Default", style="yellow")
    table.add_column("Required")
    for name, prop in schema["properties"].items():
        if "enum" in prop:
            allowed = ", ".join(prop["enum"])
        elif "minimum" in prop or "maximum" in prop:
            allowed = f"{prop.get('minimum', '')}-{prop.get('maximum', '')}"
        else:
            allowed = "any"
        table.add_row(
            name,
            prop["type"],
            allowed,
            str(prop.get("default", "")),
            "yes" if name in required else "no",
        )
    console.print(GENERATE_IMAGE_TOOL.description)
    console.print(table)


@app.command()
def generate(
    prompt: Annotated[
        str,
        typer.Option(
            "--prompt",
            "-p",
            help="The text prompt for image generation. If not provided, you will be asked to enter it.",
            show_default=False,
        ),
    ] = None,
    n: Annotated[
        int,
        typer.Option("--num-images", "-n", help="Number of images to generate (1-4)."),
    ] = None,
    aspect_ratio: Annotated[
        str, typer.Option("--aspect-ratio", help="Aspect ratio, e.g. '9:16'.")
    ] = None,
    image_size: Annotated[
        str, typer.Option("--image-size", help="Image size ('1K' or '2K').")
    ] = None,
    person_generation: Annotated[
        str,
        typer.Option(
            "--person-generation",
            help="'dont_allow', 'allow_adult' or 'allow_all'.",
        ),
    ] = None,
    api_key: Annotated[
        str,
        typer.Option(
            "--api-key",
            help="Gemini API key. Falls back to GEMINI_API_KEY.",
            show_default=False,
        ),
    ] = None,
    output_dir: Annotated[
        str, typer.Option("--output-dir", "-o", help="Directory for generated images.")
    ] = settings.output_dir,
):
    """Generate images once, without starting the MCP server."""
    configure_logging(settings.log_level)
    try:
        key = resolve_api_key(api_key)
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    if prompt is None:
        prompt = typer.prompt("Please enter the prompt for image generation")
    arguments = {
        k: v
        for k, v in {
            "prompt": prompt,
            "numberOfImages": n,
            "aspectRatio": aspect_ratio,
            "sampleImageSize": image_size,
            "personGeneration": person_generation,
        }.items()
        if v is not None
    }
    pipeline = build_pipeline(key, output_dir)

    async def _generate():
        try:
            return await pipeline.generate_image(arguments)
        finally:
            await pipeline.close()

    console.print(f'📜 Prompt: "{prompt}"')
    try:
        with console.status("[spinner]Processing...", spinner="dots"):
            result = asyncio.run(_generate())
    except McpError as e:
        console.print(f"[bold red]{error_kind(e)}:[/bold red] {e.error.message}")
        raise typer.Exit(code=1)
    console.print(
        Panel(
            result.summary,
            title="[bold green]Success ✨[/bold green]",
            expand=False,
        )
    )


if __name__ == "__main__":
    app()
