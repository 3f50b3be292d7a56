"""Interactive CLI for the AsyncAPI generator."""
import logging
from pathlib import Path

import click
from colorama import Fore, Style

from asyncapi_gen.cli.parameter_selector import ParameterSelector
from asyncapi_gen.config import AsyncApiVersion, ChannelMode, GeneratorConfig, OutputFormat, app_config
from asyncapi_gen.exporter.document_exporter import read_document, write_document
from asyncapi_gen.mapper.heuristic import detect_parameters
from asyncapi_gen.session import GeneratorSession

logger = logging.getLogger(__name__)


class InteractiveCLI:
    """Interactive CLI interface."""

    def __init__(self, session: GeneratorSession = None):
        """Initialize CLI."""
        self.session = session or GeneratorSession(GeneratorConfig())

    def print_header(self, title: str):
        """Print a section header."""
        click.echo(f"\n{Fore.CYAN}{'━' * 45}")
        click.echo(f"{Fore.CYAN}{title}")
        click.echo(f"{Fore.CYAN}{'━' * 45}{Style.RESET_ALL}\n")

    def run(self):
        """Run interactive CLI."""
        while True:
            config = self.session.config
            self.print_header("Main Menu")
            click.echo(f"Messages: {len(self.session.messages)}  |  "
                       f"AsyncAPI {config.asyncapi_version.value}  |  "
                       f"{config.channel_mode.value} channels")
            click.echo()
            click.echo("1. Load JSON file")
            click.echo("2. Show statistics")
            click.echo("3. Detect topic parameters")
            click.echo("4. Toggle channel mode")
            click.echo("5. Toggle AsyncAPI version")
            click.echo("6. Generate and save")
            click.echo("7. Clear session")
            click.echo("8. Exit\n")

            choice = click.prompt("Choose", type=int, default=1)

            if choice == 1:
                self.load_file()
            elif choice == 2:
                self.show_stats()
            elif choice == 3:
                self.detect_parameters()
            elif choice == 4:
                self.toggle_channel_mode()
            elif choice == 5:
                self.toggle_version()
            elif choice == 6:
                self.generate_and_save()
            elif choice == 7:
                self.clear()
            elif choice == 8:
                click.echo(f"{Fore.YELLOW}Goodbye!")
                break
            else:
                click.echo(f"{Fore.RED}Invalid choice")

    def load_file(self):
        """Load a JSON export into the session."""
        self.print_header("Load JSON File")
        path = click.prompt("Path to JSON file", type=click.Path(exists=True, dir_okay=False))

        try:
            added = self.session.load_file(Path(path))
        except (ValueError, OSError) as e:
            click.echo(f"{Fore.RED}Failed to load {path}: {e}")
            return

        click.echo(f"{Fore.GREEN}✅ Loaded {added} messages")

    def show_stats(self):
        self.print_header("Statistics")
        if self.session.messages:
            self.session.generate()
        stats = self.session.stats()
        registry = stats["registry"]

        click.echo(f"   Messages:      {stats['message_count']}")
        click.echo(f"   Unique topics: {stats['unique_topics']}")
        click.echo(f"   Schemas:       {registry['total_schemas']}")
        click.echo(f"   Usages:        {registry['total_usages']}")

        for item in registry["most_used"]:
            click.echo(f"   • {item['name']:40s} {item['count']:>6d}")

    def detect_parameters(self):
        """Suggest parameters and apply the ones the user picks."""
        self.print_header("Detect Topic Parameters")

        if not self.session.messages:
            click.echo(f"{Fore.YELLOW}Load messages first")
            return

        suggestions = detect_parameters(self.session.messages)
        selector = ParameterSelector(suggestions)
        selected = selector.prompt_selection()

        for substitution in selected:
            name = click.prompt(
                f"Parameter name for level {substitution.level_index}",
                default=substitution.parameter_name,
            )
            if name != substitution.parameter_name:
                substitution = selector.rename(substitution, name)
            self.session.add_substitution(substitution)

        if selected:
            self.session.update_config(channel_mode=ChannelMode.PARAMETERIZED)
            click.echo(f"{Fore.GREEN}Switched to parameterized channels")

    def toggle_channel_mode(self):
        current = self.session.config.channel_mode
        new_mode = ChannelMode.VERBOSE if current == ChannelMode.PARAMETERIZED else ChannelMode.PARAMETERIZED
        self.session.update_config(channel_mode=new_mode)
        click.echo(f"{Fore.GREEN}Channel mode: {new_mode.value}")

    def toggle_version(self):
        current = self.session.config.asyncapi_version
        new_version = AsyncApiVersion.V2_6 if current == AsyncApiVersion.V3_0 else AsyncApiVersion.V3_0
        self.session.update_config(asyncapi_version=new_version)
        click.echo(f"{Fore.GREEN}AsyncAPI version: {new_version.value}")

    def generate_and_save(self):
        """Generate the document and write it to the output directory."""
        self.print_header("Generate")

        if not self.session.messages:
            click.echo(f"{Fore.YELLOW}Load messages first")
            return

        output_format = OutputFormat(
            click.prompt(
                "Format",
                type=click.Choice([f.value for f in OutputFormat]),
                default=app_config.default_format,
            )
        )
        default_path = Path(app_config.output_dir) / f"asyncapi.{output_format.value}"
        path = Path(click.prompt("Output file", default=str(default_path)))

        try:
            if click.confirm("Merge into an existing document?", default=False):
                existing_path = click.prompt("Existing document", type=click.Path(exists=True, dir_okay=False))
                document = self.session.merge_existing(read_document(Path(existing_path)))
            else:
                document = self.session.generate()
        except (ValueError, OSError) as e:  # DocumentDialectError is a ValueError
            click.echo(f"{Fore.RED}Error: {e}")
            return

        write_document(document, path, output_format)
        click.echo(f"{Fore.GREEN}✅ Saved {path}")
        click.echo(f"{Fore.GREEN}   Channels: {len(document.get('channels') or {})}")

    def clear(self):
        if click.confirm("Drop all messages and schemas?", default=False):
            self.session.clear()
            click.echo(f"{Fore.GREEN}Session cleared")
