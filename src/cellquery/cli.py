"""Command-line interface for cellquery."""
import click
import logging
import sys
from pathlib import Path
from tqdm import tqdm
from cellquery.batch import BATCH_SIZE
from cellquery.client import QueryClient, parse_ids
from cellquery.config import Config, ConfigError
from cellquery.errors import QueryError
from cellquery.formatting import output_results
from cellquery.metrics import QueryMetrics

FORMAT_CHOICE = click.Choice(['auto', 'table', 'csv', 'json'], case_sensitive=False)


def parse_pairs(pairs, name):
    """Turn ('key=value', ...) into a dict."""
    parsed = {}
    for pair in pairs:
        key, sep, value = pair.partition('=')
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint=name)
        parsed[key.strip()] = value.strip()
    return parsed


def make_client(ctx, category, subcategory):
    """Build a client from the group options stored on the context."""
    return QueryClient(
        ctx.obj['config'],
        category,
        subcategory,
        species=ctx.obj['species']
    )


@click.group()
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True), default=None,
              help='Client config file (YAML)')
@click.option('--species', '-s', default=None, help='Species token (default from config)')
@click.option('--verbose', '-v', is_flag=True, help='Log every REST call')
@click.pass_context
def main(ctx, config_path, species, verbose):
    """Query genomic REST web services in batches."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    try:
        config = Config.from_file(Path(config_path)) if config_path else Config.default()
    except ConfigError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    ctx.obj = {'config': config, 'species': species}


@main.command()
@click.argument('category')
@click.argument('subcategory')
@click.argument('ids', nargs=-1, required=True)
@click.option('--option', '-o', 'pairs', multiple=True, help='Extra query option as key=value')
@click.option('--limit', type=click.IntRange(min=1), default=None, help='Page size per id')
@click.option('--threads', type=click.IntRange(min=1), default=None, help='Parallel batches')
@click.option('--format', type=FORMAT_CHOICE, default='auto', help='Output format (default: auto-detect)')
@click.pass_context
def get(ctx, category, subcategory, ids, pairs, limit, threads, format):
    """Fetch records for IDS (space or comma separated)."""
    options = parse_pairs(pairs, '--option')
    if limit:
        options['limit'] = limit
    if threads:
        options['numThreads'] = threads

    id_list = parse_ids(','.join(ids))
    client = make_client(ctx, category, subcategory)
    metrics = QueryMetrics()

    try:
        with tqdm(total=None, desc="Fetching batches", unit="batch", file=sys.stderr,
                  disable=len(id_list) <= BATCH_SIZE) as pbar:

            def update_progress(batch_num, total_batches):
                pbar.total = total_batches
                pbar.update(1)

            response = client.get(id_list, options, callback=update_progress, metrics=metrics)
    except (QueryError, ValueError) as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt as e:
        click.echo(f"\nQuery interrupted: {e}", err=True)
        sys.exit(1)

    output_results(response, ids=id_list, format=format)
    logging.getLogger(__name__).info(metrics.format_report())


@main.command()
@click.argument('category')
@click.argument('subcategory')
@click.option('--filter', '-f', 'pairs', multiple=True, help='Filter field as key=value')
@click.pass_context
def count(ctx, category, subcategory, pairs):
    """Count records matching the filters."""
    query = parse_pairs(pairs, '--filter')
    client = make_client(ctx, category, subcategory)

    try:
        response = client.count(query)
    except QueryError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    if not response.results:
        click.echo("ERROR: Server returned no count", err=True)
        sys.exit(1)

    result = response.results[0]
    click.echo(result.items[0] if result.items else result.num_total_results)


@main.command()
@click.argument('category')
@click.argument('subcategory')
@click.option('--format', type=FORMAT_CHOICE, default='json', help='Output format (default: json)')
@click.pass_context
def first(ctx, category, subcategory, format):
    """Fetch the first record, to check the service is reachable."""
    client = make_client(ctx, category, subcategory)

    try:
        response = client.first()
    except QueryError as e:
        click.echo(f"ERROR: {e}", err=True)
        sys.exit(1)

    output_results(response, format=format)


if __name__ == '__main__':
    main()
