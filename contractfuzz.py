#!/usr/bin/env python3
"""
contractfuzz Main Entry Point
Negative and boundary testing of REST APIs described by OpenAPI contracts
"""

import asyncio
import sys
import click

from core import ConfigurationManager, setup_logging, __version__
from core.config import EdgeSpacesStrategy, FieldsFuzzingStrategy
from core.engine import ContractFuzzCore
from core.logging import get_logger, set_package_log_level, set_reporting_level
from modules.fuzzing.data import OPERATION_KEYS
from modules.fuzzing.registry import FuzzerRegistry
from utils.contract_loader import ContractError, load_contract
from utils.test_case_listener import TestCaseListener


def print_banner():
    """Print contractfuzz banner"""
    banner = rf"""
                  _                  _    __
  ___ ___  _ __ | |_ _ __ __ _  ___| |_ / _|_   _ ___________
 / __/ _ \| '_ \| __| '__/ _` |/ __| __| |_| | | |_  /_  /
| (_| (_) | | | | |_| | | (_| | (__| |_|  _| |_| |/ / / /
 \___\___/|_| |_|\__|_|  \__,_|\___|\__|_|  \__,_/___/___|

contractfuzz v{__version__} - OpenAPI negative and boundary testing
"""
    click.echo(banner, color=True)


def build_overrides(**options) -> dict:
    """Map CLI option values to configuration overrides, unset options are dropped"""
    return {key: value for key, value in options.items() if value not in (None, ())}


@click.group(invoke_without_command=True)
@click.option('--contract', help='Location of the OpenAPI contract (YAML or JSON)')
@click.option('--server', help='Base URL of the service under test')
@click.option('--fuzzers', help='Comma separated list of fuzzers to run (default: all)')
@click.option('--paths', help='Semicolon separated list of contract paths to fuzz (default: all)')
@click.option('--fieldsFuzzingStrategy', 'fields_fuzzing_strategy',
              type=click.Choice([s.value for s in FieldsFuzzingStrategy], case_sensitive=False),
              help='How RemoveFieldsFuzzer picks the fields it removes (default: ONEBYONE)')
@click.option('--maxFieldsToRemove', 'max_fields_to_remove', type=int,
              help='Largest number of fields removed at once by SIZE and POWERSET')
@click.option('--refData', 'ref_data', help='YAML file with reference data per path')
@click.option('--headers', help='YAML file with headers per path')
@click.option('--reportingLevel', 'reporting_level',
              type=click.Choice(['info', 'warn', 'error'], case_sensitive=False),
              help='Lowest level of the reported test case results (default: info)')
@click.option('--edgeSpacesStrategy', 'edge_spaces_strategy',
              type=click.Choice([s.value for s in EdgeSpacesStrategy], case_sensitive=False),
              help='Expected handling of leading and trailing spaces (default: trimAndValidate)')
@click.option('--urlParams', 'url_params', help='Path parameter values as name:value;name2:value2')
@click.option('--customFuzzerFile', 'custom_fuzzer', help='YAML file with custom fuzzer test cases')
@click.option('--log', 'package_log_levels', multiple=True, help='Log level of a package as package:level')
@click.option('--log-level', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              default='INFO', help='Logging level')
@click.option('--log-file', help='Log file path (optional)')
@click.option('--json-logs', is_flag=True, help='Output logs in JSON format')
@click.option('--timeout', type=float, help='Request timeout in seconds (default: 10)')
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True),
              help='Configuration file path (YAML or JSON) - optional')
@click.option('--no-banner', is_flag=True, help='Suppress banner output')
@click.pass_context
def cli(ctx, contract, server, fuzzers, paths, fields_fuzzing_strategy, max_fields_to_remove,
        ref_data, headers, reporting_level, edge_spaces_strategy, url_params, custom_fuzzer,
        package_log_levels, log_level, log_file, json_logs, timeout, config_path, no_banner):
    """contractfuzz - OpenAPI negative and boundary testing

    \b
    Fuzzes every operation of an OpenAPI contract and checks the service
    answers with the expected response codes.

    \b
    Examples:
      contractfuzz --contract=api.yml --server=http://localhost:8080
      contractfuzz --contract=api.yml --server=URL --fuzzers=HappyFuzzer,VeryLargeStringsFuzzer
      contractfuzz --contract=api.yml --server=URL --paths="/pets;/pets/{id}" --reportingLevel=warn
      contractfuzz list fuzzers
      contractfuzz list paths --contract=api.yml
    """
    ctx.ensure_object(dict)
    ctx.obj['contract'] = contract

    # Setup logging
    setup_logging(level=log_level, json_logs=json_logs, log_file=log_file)
    if ctx.invoked_subcommand is not None:
        return

    if not no_banner:
        print_banner()

    logger = get_logger("cli")
    logger.info("contractfuzz starting", version=__version__, contract=contract, server=server)

    config_manager = ConfigurationManager()
    try:
        if config_path:
            config_manager.load_config(config_path)
        else:
            config_manager.load_config_from_dict({})
        config_manager.merge_cli_overrides(build_overrides(
            contract=contract,
            server=server,
            timeout=timeout,
            fuzzers=fuzzers,
            paths=paths,
            fields_fuzzing_strategy=fields_fuzzing_strategy,
            max_fields_to_remove=max_fields_to_remove,
            edge_spaces_strategy=edge_spaces_strategy,
            url_params=url_params,
            ref_data=ref_data,
            headers=headers,
            custom_fuzzer=custom_fuzzer,
            reporting_level=reporting_level,
            log_level=log_level,
            log_file=log_file,
            json_logs=json_logs or None,
            package_log_levels=package_log_levels
        ))
        reporting = config_manager.config.reporting
        set_reporting_level(reporting.reporting_level)
        for package_level in reporting.package_log_levels:
            set_package_log_level(package_level)
    except (ValueError, OSError) as e:
        raise click.UsageError(str(e))

    outcome = asyncio.run(ContractFuzzCore(config_manager.config).run())
    if outcome.aborted:
        click.echo(f"Error: {outcome.reason}", err=True)
    sys.exit(outcome.exit_code)


@cli.group('list')
def list_group():
    """List fuzzers, contract paths or fields fuzzing strategies"""


@list_group.command('fuzzers')
def list_fuzzers():
    """List every registered fuzzer with its description"""
    registry = FuzzerRegistry.default(None, TestCaseListener())
    fuzzers = registry.all()
    click.echo(f"Registered fuzzers ({len(fuzzers)}):")
    for fuzzer in fuzzers:
        click.echo(f"  • {fuzzer.name} - {fuzzer.description()}")


@list_group.command('paths')
@click.option('--contract', help='Location of the OpenAPI contract (YAML or JSON)')
@click.pass_context
def list_paths(ctx, contract):
    """List the paths declared in a contract"""
    contract = contract or (ctx.obj or {}).get('contract')
    if not contract:
        raise click.UsageError("Missing option '--contract'")

    try:
        loaded = load_contract(contract)
    except ContractError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    paths = loaded.path_names()
    click.echo(f"{len(paths)} paths and {sum(len(_operations(loaded.paths[p])) for p in paths)} operations:")
    for path in paths:
        click.echo(f"  • {path} {', '.join(_operations(loaded.paths[path]))}")


def _operations(path_item) -> list:
    return [key.upper() for key in OPERATION_KEYS if isinstance((path_item or {}).get(key), dict)]


@list_group.command('fieldsFuzzerStrategies')
def list_fields_fuzzer_strategies():
    """List the strategies RemoveFieldsFuzzer supports"""
    click.echo("Registered fieldsFuzzerStrategies:")
    for strategy in FieldsFuzzingStrategy:
        click.echo(f"  • {strategy.value}")


@cli.command()
@click.pass_context
def commands(ctx):
    """List the available sub-commands"""
    group = ctx.parent.command
    for name in group.list_commands(ctx):
        command = group.get_command(ctx, name)
        click.echo(f"  {name:<10} {command.get_short_help_str()}")
    for name in list_group.list_commands(ctx):
        command = list_group.get_command(ctx, name)
        click.echo(f"  list {name:<22} {command.get_short_help_str()}")


@cli.command('help')
@click.pass_context
def help_command(ctx):
    """Show the usage and every option"""
    click.echo(ctx.parent.get_help())


@cli.command()
def version():
    """Show the contractfuzz version"""
    click.echo(f"contractfuzz {__version__}")


if __name__ == '__main__':
    cli()
