import click
import json

from pydantic import ValidationError

from .agent import InventoryAgent
from .config import ConfigManager
from .inventory.checker import findings, report_payload
from .inventory.collectors import parse_observed_text
from .inventory.loader import ParseError, load_dictionary


def _make_agent(ctx, dictionary=None) -> InventoryAgent:
    try:
        return InventoryAgent(ctx.obj['config'], dictionary_path=dictionary)
    except (ParseError, FileNotFoundError) as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option('--config', '-c', default=None, help='Configuration file path')
@click.pass_context
def cli(ctx, config):
    """AV Service Inventory CLI"""
    ctx.ensure_object(dict)
    ctx.obj['config'] = config


@cli.command()
@click.option('--dictionary', '-d', help='Service dictionary JSON file')
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def vendors(ctx, dictionary, as_json):
    """List known vendors"""
    agent = _make_agent(ctx, dictionary)
    table = agent.dictionary

    if as_json:
        _echo_json({
            "vendors": {name: len(v.services) for name, v in table.vendors.items()},
            "source": table.source,
            "digest": table.digest,
        })
        return

    click.echo(f"Vendors ({table.source}):")
    click.echo("=" * 40)
    for name, vendor in table.vendors.items():
        click.echo(f"{name}: {len(vendor.services)} services")


@cli.command()
@click.argument('vendor')
@click.option('--dictionary', '-d', help='Service dictionary JSON file')
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.pass_context
def show(ctx, vendor, dictionary, as_json):
    """Show the known services of a vendor"""
    agent = _make_agent(ctx, dictionary)
    try:
        entry = agent.dictionary.vendor(vendor)
    except KeyError:
        raise click.ClickException(f"Unknown vendor: {vendor}")

    if as_json:
        _echo_json({
            "name": entry.name,
            "services": [s.model_dump(by_alias=True) for s in entry.services],
        })
        return

    click.echo(f"{entry.name}:")
    for service in entry.services:
        click.echo(f"  {service.svc_name} ({service.executable})")
        if service.description:
            click.echo(f"    {service.description}")


@cli.command()
@click.argument('name')
@click.option('--dictionary', '-d', help='Service dictionary JSON file')
@click.pass_context
def lookup(ctx, name, dictionary):
    """Look up an executable or service name"""
    agent = _make_agent(ctx, dictionary)
    hits = agent.checker.lookup(name)
    if not hits:
        click.echo(f"No known service matches: {name}")
        return

    for field, (vendor, service) in hits:
        click.echo(
            f"[{vendor}] {service.svc_name} ({service.executable}) "
            f"matched on {field.value}"
        )


@cli.command()
@click.argument('names', nargs=-1)
@click.option('--dictionary', '-d', help='Service dictionary JSON file')
@click.option('--input', '-i', 'input_file', type=click.File('r'),
              help='File with observed names, one per line or CSV ("-" for stdin)')
@click.option('--host', 'host', is_flag=True,
              help='Also collect running processes and services on this host')
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
@click.option('--findings', 'as_findings', is_flag=True,
              help='Output matches as JSON finding records')
@click.pass_context
def check(ctx, names, dictionary, input_file, host, as_json, as_findings):
    """Check observed names against the service dictionary"""
    agent = _make_agent(ctx, dictionary)

    observed = list(names)
    if input_file is not None:
        observed.extend(parse_observed_text(input_file.read()))

    # Without explicit names or an input file, scan the local host
    if not observed and input_file is None:
        host = True

    hostname = None
    if host:
        observation = agent.collector.collect()
        observed.extend(observation.entries())
        hostname = observation.hostname

    report = agent.checker.check(observed, hostname=hostname)

    if as_findings:
        _echo_json([f.model_dump(mode="json") for f in findings(report)])
        return

    if as_json:
        _echo_json(report_payload(report))
        return

    click.echo(f"Observed entries: {report.observed_count}")
    if report.is_empty:
        click.echo("No known security vendor services found.")
        return

    click.echo(f"Known services found: {report.matches_count}")
    for vendor in report.vendors_detected:
        for match in report.matches_for(vendor):
            click.echo(
                f"  [{vendor}] {match.service.svc_name} "
                f"({match.service.executable}) <- {', '.join(match.observed)}"
            )


@cli.command()
@click.argument('path', type=click.Path(dir_okay=False))
def validate(path):
    """Validate a service dictionary file"""
    try:
        table = load_dictionary(path)
    except ParseError as e:
        raise click.ClickException(f"Invalid dictionary: {e}")

    click.echo(f"OK: {len(table)} vendors, {table.service_count} services")
    click.echo(f"sha256: {table.digest}")


@cli.command()
@click.option('--host', 'bind_host', help='Bind address')
@click.option('--port', '-p', type=int, help='Port')
@click.option('--dictionary', '-d', help='Service dictionary JSON file')
@click.pass_context
def serve(ctx, bind_host, port, dictionary):
    """Serve the inventory HTTP API"""
    agent = _make_agent(ctx, dictionary)
    agent.serve(host=bind_host, port=port)


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command('show')
@click.pass_context
def show_config(ctx):
    """Show the effective configuration"""
    config_path = ctx.find_root().obj['config']
    try:
        manager = ConfigManager(config_path)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    click.echo(f"Configuration ({config_path or 'defaults'}):")
    click.echo("=" * 40)
    click.echo(manager.dump())


if __name__ == '__main__':
    cli()
