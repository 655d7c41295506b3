import asyncio, logging, time
import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .adapters.resolution_cache import ResolutionCache
from .application.sources import SOURCES, create
from .config import get_settings
from .domain.errors import GenocacheError
from .domain.models import ContigInterval
from .domain.records import describe

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(), format="%(message)s", datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)], force=True,
    )


def _region(ctx, param, value: str) -> ContigInterval:
    try:
        return ContigInterval.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: GENOCACHE_LOG_LEVEL or INFO)")
def cli(log_level):
    """genocache: resolution-aware cache for remote genomic range data."""
    _setup_logging(log_level or get_settings().log_level)


@cli.command("resolution")
@click.argument("region", callback=_region)
def resolution_cmd(region):
    """Print the binning resolution a viewer would use for REGION."""
    console.print(f"{region} ({region.length():,} bp) → resolution [bold]{ResolutionCache.get_resolution(region)}[/]")


@cli.command("fetch")
@click.argument("kind", type=click.Choice(sorted(SOURCES)))
@click.argument("regions", nargs=-1, required=True, callback=lambda c, p, v: [_region(c, p, r) for r in v])
@click.option("--url", default=None, help="Endpoint base URL (default: GENOCACHE_BASE_URL)")
@click.option("--read-group-id", default=None, help="Alignments: read group appended to the URL")
@click.option("--forced-reference-id", default=None, help="Alignments: reference id sent instead of the contig")
@click.option("--sample", "samples", multiple=True, help="Variants: sample id; repeat for several")
@click.option("--concurrency", type=int, default=None, help="Max parallel requests per source")
@click.option("--limit", type=int, default=50, show_default=True, help="Max records to print per region")
def fetch_cmd(kind, regions, url, read_group_id, forced_reference_id, samples, concurrency, limit):
    """Fetch KIND records for one or more REGIONs (chr:start-stop) and print what got cached."""
    url = url or get_settings().base_url
    if not url:
        raise click.UsageError("Pass --url or set GENOCACHE_BASE_URL")

    kw = {}
    if concurrency: kw["concurrency"] = concurrency
    if kind == "alignments" and forced_reference_id: kw["forced_reference_id"] = forced_reference_id
    if kind == "variants" and samples: kw["samples"] = list(samples)

    async def run():
        source = create(kind, url, read_group_id=read_group_id, **kw)
        events: list[str] = []
        source.on("newdata", lambda r: events.append(f"[green]newdata[/] {r}"))
        source.on("networkprogress", lambda n: events.append(f"[cyan]networkprogress[/] {n}"))
        source.on("networkdone", lambda: events.append("[cyan]networkdone[/]"))
        source.on("networkfailure", lambda m: events.append(f"[red]networkfailure[/] {m}"))

        t0 = time.time()
        async with source:
            for region in regions:
                source.range_changed(region)
            await source.settle()

            for line in events:
                console.print(line)
            for region in regions:
                res = ResolutionCache.get_resolution(region) if source.binned else None
                records = source.get_in_range(region, res)
                table = Table(title=f"{kind} in {region} ({len(records)} records)", expand=True)
                table.add_column("position", justify="right")
                table.add_column("record")
                for rec in records[:limit]:
                    table.add_row(f"{source.strategy.position(rec):,}", describe(rec))
                console.print(table)
            console.print(
                f"[bold]done[/]: {source.remote.num_network_requests} network requests • {time.time() - t0:.2f}s"
            )
        return any("networkfailure" in e for e in events)

    try:
        failed = asyncio.run(run())
    except (GenocacheError, ValueError) as e:
        raise click.ClickException(str(e))
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
