"""Command line interface for the AsyncAPI generator."""
import logging
from pathlib import Path
from typing import List, Tuple
from urllib.parse import urlsplit, urlunsplit

import click
from colorama import Fore, Style, init

from asyncapi_gen import __version__
from asyncapi_gen.api.spec_client import SpecClient, SpecFetchError, is_remote
from asyncapi_gen.builder import DocumentDialectError, merge_documents
from asyncapi_gen.cli.interactive import InteractiveCLI
from asyncapi_gen.config import (
    SERVER_PROTOCOLS,
    AsyncApiVersion,
    ChannelMode,
    GeneratorConfig,
    InferenceDialect,
    InfoConfig,
    OutputFormat,
    ServerConfig,
    TopicSubstitution,
    app_config,
)
from asyncapi_gen.exporter.document_exporter import export_document, read_document, write_document
from asyncapi_gen.mapper.heuristic import detect_parameters
from asyncapi_gen.parser.json_loader import get_unique_topics, load_json_file
from asyncapi_gen.schema.models import ExtractedMessage
from asyncapi_gen.session import GeneratorSession

logger = logging.getLogger(__name__)

# Initialize colorama
init(autoreset=True)


def print_banner():
    """Print application banner."""
    click.echo(f"{Fore.CYAN}{'=' * 44}")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}AsyncAPI Generator{Fore.CYAN}                   ║")
    click.echo(f"{Fore.CYAN}║   {Fore.WHITE}Specs from observed MQTT traffic{Fore.CYAN}     ║")
    click.echo(f"{Fore.CYAN}{'=' * 44}{Style.RESET_ALL}")
    click.echo()


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, app_config.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ============================================================================
# Option parsing
# ============================================================================


def parse_substitution(value: str) -> TopicSubstitution:
    """``LEVEL:NAME[:PATTERN]`` -> TopicSubstitution."""
    parts = value.split(":", 2)
    if len(parts) < 2:
        raise click.BadParameter(f"Expected LEVEL:NAME[:PATTERN], got {value!r}")

    try:
        level = int(parts[0])
    except ValueError:
        raise click.BadParameter(f"Level must be an integer, got {parts[0]!r}")

    try:
        return TopicSubstitution(
            level_index=level,
            parameter_name=parts[1],
            pattern=parts[2] if len(parts) == 3 else None,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))


def parse_server(value: str) -> ServerConfig:
    """
    ``NAME=URL`` -> ServerConfig

    The protocol comes from the URL scheme. A ``user[:password]@`` part
    sets the server username and is stripped from the stored URL.
    """
    name, sep, url = value.partition("=")
    if not sep or not name or not url:
        raise click.BadParameter(f"Expected NAME=URL, got {value!r}")

    scheme = url.split("://", 1)[0].lower() if "://" in url else "mqtt"
    protocol = scheme if scheme in SERVER_PROTOCOLS else "mqtt"

    username = None
    if "://" in url:
        parts = urlsplit(url)
        if "@" in parts.netloc:
            username = parts.username or None
            netloc = parts.netloc.rsplit("@", 1)[-1]
            url = urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    return ServerConfig(name=name, url=url, protocol=protocol, username=username)


def load_messages(inputs: Tuple[str, ...]) -> List[ExtractedMessage]:
    messages: List[ExtractedMessage] = []
    for input_path in inputs:
        try:
            messages.extend(load_json_file(Path(input_path)))
        except ValueError as e:
            raise click.ClickException(f"{Fore.RED}{input_path}: {e}{Style.RESET_ALL}")
    return messages


def load_existing_document(location: str) -> dict:
    try:
        if is_remote(location):
            return SpecClient(timeout=app_config.fetch_timeout).fetch_document(location)
        return read_document(Path(location))
    except (SpecFetchError, ValueError, OSError) as e:
        raise click.ClickException(f"{Fore.RED}Cannot load {location}: {e}{Style.RESET_ALL}")


def merge_detected(
    explicit: List[TopicSubstitution],
    detected: List[TopicSubstitution],
) -> List[TopicSubstitution]:
    """Explicit rules win; detected rules only fill levels nobody claimed."""
    taken_levels = {s.level_index for s in explicit}
    taken_names = {s.parameter_name for s in explicit}
    rules = list(explicit)
    for suggestion in detected:
        if suggestion.level_index in taken_levels or suggestion.parameter_name in taken_names:
            continue
        rules.append(suggestion)
        taken_levels.add(suggestion.level_index)
        taken_names.add(suggestion.parameter_name)
    return rules


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """AsyncAPI Generator - Build AsyncAPI documents from sampled MQTT messages."""
    setup_logging(verbose)


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file (stdout if omitted)")
@click.option("--format", "output_format", type=click.Choice([f.value for f in OutputFormat]), help="Output format")
@click.option("--asyncapi-version", type=click.Choice([v.value for v in AsyncApiVersion]), help="Document dialect")
@click.option("--mode", type=click.Choice([m.value for m in ChannelMode]), help="Channel mode")
@click.option("--substitution", "substitutions", multiple=True, help="Topic parameter LEVEL:NAME[:PATTERN]")
@click.option("--auto-detect", is_flag=True, help="Detect topic parameters automatically")
@click.option("--dialect", type=click.Choice([d.value for d in InferenceDialect]), help="Object inference dialect")
@click.option("--no-examples", is_flag=True, help="Leave examples out of the document")
@click.option("--title", help="Document title")
@click.option("--api-version", help="Document info version")
@click.option("--server", "servers", multiple=True, help="Broker NAME=URL")
@click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="YAML/JSON config file")
@click.option("--merge", "merge_with", help="Existing document (path or URL) to merge into")
def generate(
    inputs, output, output_format, asyncapi_version, mode, substitutions, auto_detect,
    dialect, no_examples, title, api_version, servers, config_file, merge_with,
):
    """Generate an AsyncAPI document from JSON message exports."""
    try:
        config = GeneratorConfig.from_file(Path(config_file)) if config_file else GeneratorConfig()
    except (ValueError, KeyError, OSError) as e:
        raise click.ClickException(f"{Fore.RED}Invalid config file: {e}{Style.RESET_ALL}")

    changes = {}
    if output_format:
        changes["output_format"] = OutputFormat(output_format)
    if asyncapi_version:
        changes["asyncapi_version"] = AsyncApiVersion(asyncapi_version)
    if mode:
        changes["channel_mode"] = ChannelMode(mode)
    if dialect:
        changes["dialect"] = InferenceDialect(dialect)
    if no_examples:
        changes["include_examples"] = False
    if title or api_version:
        changes["info"] = InfoConfig(
            title=title or config.info.title,
            version=api_version or config.info.version,
            description=config.info.description,
        )
    if servers:
        changes["servers"] = list(config.servers) + [parse_server(s) for s in servers]

    rules = list(config.topic_substitutions) + [parse_substitution(s) for s in substitutions]
    messages = load_messages(inputs)

    if auto_detect:
        detected = detect_parameters(messages)
        rules = merge_detected(rules, detected)
        click.echo(f"{Fore.CYAN}Detected {len(detected)} parameter(s)", err=True)

    if substitutions or auto_detect:
        changes["topic_substitutions"] = rules
        if not mode:
            changes["channel_mode"] = ChannelMode.PARAMETERIZED

    config = config.replace(**changes)

    session = GeneratorSession(config)
    session.add_messages(messages)

    try:
        if merge_with:
            document = session.merge_existing(load_existing_document(merge_with))
        else:
            document = session.generate()
    except DocumentDialectError as e:
        raise click.ClickException(f"{Fore.RED}{e}{Style.RESET_ALL}")

    channel_count = len(document.get("channels") or {})
    schema_count = len((document.get("components") or {}).get("schemas") or {})

    if output:
        path = write_document(document, Path(output), config.output_format if output_format else None)
        click.echo(f"{Fore.GREEN}✅ Wrote {path}")
        click.echo(f"{Fore.GREEN}   Messages: {len(messages)}")
        click.echo(f"{Fore.GREEN}   Channels: {channel_count}")
        click.echo(f"{Fore.GREEN}   Schemas: {schema_count}")
    else:
        click.echo(export_document(document, config.output_format))


@cli.command("detect-params")
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--min-variants", type=int, default=2, show_default=True, help="Distinct segments needed per level")
def detect_params(inputs, min_variants):
    """Suggest topic parameters from topic variability."""
    messages = load_messages(inputs)

    try:
        suggestions = detect_parameters(messages, min_variants=min_variants)
    except ValueError as e:
        raise click.ClickException(str(e))

    topics = get_unique_topics(messages)
    click.echo(f"{Fore.CYAN}{len(topics)} unique topics, {len(suggestions)} suggested parameter(s)\n")

    for suggestion in suggestions:
        preview = ", ".join(suggestion.values[:5])
        more = f" (+{len(suggestion.values) - 5} more)" if len(suggestion.values) > 5 else ""
        click.echo(f"{Fore.GREEN}Level {suggestion.level_index}: {{{suggestion.parameter_name}}}")
        click.echo(f"   {suggestion.description}")
        click.echo(f"   Values: {preview}{more}")
        click.echo(f"   Use: --substitution {suggestion.level_index}:{suggestion.parameter_name}")


@cli.command()
@click.argument("existing", type=click.Path(exists=True, dir_okay=False))
@click.argument("incoming")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output file (stdout if omitted)")
def merge(existing, incoming, output):
    """Merge INCOMING (path or URL) into the EXISTING document."""
    existing_doc = load_existing_document(existing)
    incoming_doc = load_existing_document(incoming)

    try:
        merged = merge_documents(existing_doc, incoming_doc)
    except DocumentDialectError as e:
        raise click.ClickException(f"{Fore.RED}{e}{Style.RESET_ALL}")

    if output:
        path = write_document(merged, Path(output))
        click.echo(f"{Fore.GREEN}✅ Wrote {path}")
    else:
        output_format = OutputFormat.JSON if existing.lower().endswith(".json") else OutputFormat.YAML
        click.echo(export_document(merged, output_format))


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--top", type=int, default=10, show_default=True, help="Schemas to list")
def stats(inputs, top):
    """Show channel and schema statistics for JSON exports."""
    session = GeneratorSession(GeneratorConfig())
    session.add_messages(load_messages(inputs))
    document = session.generate()

    summary = session.stats()
    registry_stats = session.registry.stats(top_n=top)

    click.echo(f"{Fore.CYAN}Messages:       {summary['message_count']}")
    click.echo(f"{Fore.CYAN}Unique topics:  {summary['unique_topics']}")
    click.echo(f"{Fore.CYAN}Channels:       {len(document.get('channels') or {})}")
    click.echo(f"{Fore.CYAN}Schemas:        {registry_stats['total_schemas']}")
    click.echo(f"{Fore.CYAN}Schema usages:  {registry_stats['total_usages']}")

    if summary["model_names"]:
        click.echo(f"{Fore.CYAN}Models:         {', '.join(summary['model_names'])}")

    if registry_stats["most_used"]:
        click.echo(f"\n{Fore.YELLOW}Most used schemas:")
        for item in registry_stats["most_used"]:
            click.echo(f"   • {item['name']:40s} {item['count']:>6d}")


@cli.command()
def interactive():
    """Menu-driven generator session."""
    print_banner()
    InteractiveCLI().run()


def main():
    cli()


if __name__ == "__main__":
    main()
