"""Command-line interface for the parallel Mandelbrot renderer."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from parallelbrot.core.config import EscapeCriterion, Precision, load_config
from parallelbrot.core.errors import ConfigurationError

app = typer.Typer(
    name="parallelbrot",
    help="Parallel Mandelbrot Renderer",
    add_completion=False,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(overrides: dict, scale: int | None = None):
    """Build the RunConfig from the options that were given.

    Options left unset fall through to PARALLELBROT_* variables, .env and
    the RunConfig defaults.
    """
    given = {key: value for key, value in overrides.items() if value is not None}
    try:
        return load_config(scale=1 if scale is None else scale, **given)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=2)


@app.command()
def render(
    width: Annotated[Optional[int], typer.Option(help="Base image width (pixels)")] = None,
    height: Annotated[Optional[int], typer.Option(help="Base image height (pixels)")] = None,
    scale: Annotated[Optional[int], typer.Option(help="Multiplier applied to width and height")] = None,
    iterations: Annotated[Optional[int], typer.Option(help="Iteration bound")] = None,
    regions: Annotated[Optional[int], typer.Option(help="Number of regions (rounded down to a square)")] = None,
    workers: Annotated[Optional[int], typer.Option(help="Maximum concurrent workers")] = None,
    re_start: Annotated[Optional[float], typer.Option(help="Real axis start")] = None,
    re_end: Annotated[Optional[float], typer.Option(help="Real axis end")] = None,
    im_start: Annotated[Optional[float], typer.Option(help="Imaginary axis start")] = None,
    im_end: Annotated[Optional[float], typer.Option(help="Imaginary axis end")] = None,
    escape_radius: Annotated[Optional[float], typer.Option(help="Escape radius")] = None,
    criterion: Annotated[Optional[EscapeCriterion], typer.Option(help="Escape test")] = None,
    precision: Annotated[Optional[Precision], typer.Option(help="Complex precision")] = None,
    output_dir: Annotated[Optional[Path], typer.Option(help="Directory for the output image")] = None,
    progress: Annotated[Optional[bool], typer.Option(help="Show dispatch and render progress")] = None,
    show_regions: Annotated[Optional[bool], typer.Option(help="Log every region as it is created")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """Render the Mandelbrot set to a PNG file.

    Unset options come from PARALLELBROT_* environment variables or .env.
    """
    from parallelbrot.pipeline import Pipeline

    _configure_logging(verbose)
    config = _load(
        dict(
            width=width,
            height=height,
            iteration_bound=iterations,
            region_count=regions,
            worker_count=workers,
            re_start=re_start,
            re_end=re_end,
            im_start=im_start,
            im_end=im_end,
            escape_radius=escape_radius,
            escape_criterion=criterion,
            precision=precision,
            output_dir=output_dir,
            progress_enabled=progress,
            show_regions=show_regions,
        ),
        scale,
    )

    console.print(Panel.fit(
        f"[bold]Mandelbrot {config.width}x{config.height}[/bold]\n"
        f"Iterations: {config.iteration_bound} | "
        f"Regions: {config.grid_side ** 2} | Workers: {config.worker_count}"
    ))

    if config.progress_enabled:
        with Progress(
            TextColumn("{task.description:<10}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as bars:
            tasks = {
                "dispatch": bars.add_task("dispatch", total=1.0),
                "render": bars.add_task("render", total=1.0),
            }

            def observer(event):
                bars.update(tasks[event.stage], completed=event.fraction)

            result = Pipeline(config=config, progress_observer=observer).run()
    else:
        result = Pipeline(config=config).run()

    table = Table(title="Render Results")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Pixels rendered", str(result.pixels_rendered))
    table.add_row("Regions", str(result.regions_dispatched))
    table.add_row("Peak workers", str(result.peak_workers))
    table.add_row("Time", f"{result.elapsed_seconds:.2f} s")
    console.print(table)

    if result.output_path is not None:
        console.print(f"[green]Image created: {result.output_path}[/green]")
    else:
        console.print(f"[red]err:[/red] {result.encode_error}")


@app.command("regions")
def show_regions(
    width: Annotated[Optional[int], typer.Option(help="Image width (pixels)")] = None,
    height: Annotated[Optional[int], typer.Option(help="Image height (pixels)")] = None,
    regions: Annotated[Optional[int], typer.Option(help="Number of regions (rounded down to a square)")] = None,
):
    """List the work regions an image would be split into."""
    from parallelbrot.pipeline import RegionPartitioner

    config = _load(dict(width=width, height=height, region_count=regions))
    partitioner = RegionPartitioner(config)

    table = Table(title=f"{partitioner.region_count} regions")
    table.add_column("#", justify="right")
    table.add_column("x")
    table.add_column("y")
    table.add_column("Pixels", justify="right")
    for i, region in enumerate(partitioner.regions()):
        table.add_row(
            str(i),
            f"{region.min_x}-{region.max_x}",
            f"{region.min_y}-{region.max_y}",
            str(region.pixel_count),
        )
    console.print(table)

    if partitioner.is_truncated:
        console.print(
            f"[yellow]Truncated:[/yellow] only {partitioner.covered_width}x"
            f"{partitioner.covered_height} of {config.width}x{config.height} is covered"
        )


@app.command()
def version():
    """Show version information."""
    from parallelbrot import __version__
    console.print(f"parallelbrot v{__version__}")


if __name__ == "__main__":
    app()
