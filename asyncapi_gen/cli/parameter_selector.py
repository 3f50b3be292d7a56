"""Interactive selection of detected topic parameters."""
from typing import List

import click
import questionary
from colorama import Fore

from asyncapi_gen.config import TopicSubstitution


class ParameterSelector:
    """Let the user pick which suggested parameters to apply."""

    def __init__(self, suggestions: List[TopicSubstitution]):
        self.suggestions = suggestions
        self.selected: List[TopicSubstitution] = []

    @staticmethod
    def describe(suggestion: TopicSubstitution) -> str:
        preview = ", ".join(suggestion.values[:3])
        if len(suggestion.values) > 3:
            preview += ", ..."
        return f"Level {suggestion.level_index}: {{{suggestion.parameter_name}}}  ({preview})"

    def prompt_selection(self) -> List[TopicSubstitution]:
        """
        Prompt the user with a checkbox list.

        Returns:
            List[TopicSubstitution]: The chosen suggestions (empty on cancel)
        """
        if not self.suggestions:
            click.echo(f"{Fore.YELLOW}No varying topic levels found")
            return []

        choices = [
            questionary.Choice(title=self.describe(s), value=index, checked=True)
            for index, s in enumerate(self.suggestions)
        ]
        answer = questionary.checkbox("Select parameters to apply:", choices=choices).ask()

        if not answer:
            click.echo(f"{Fore.YELLOW}No parameters selected")
            self.selected = []
            return []

        self.selected = [self.suggestions[i] for i in answer]
        self._display_selection()
        return self.selected

    def rename(self, suggestion: TopicSubstitution, name: str) -> TopicSubstitution:
        """Copy of a suggestion under another parameter name."""
        return TopicSubstitution(
            level_index=suggestion.level_index,
            parameter_name=name,
            description=suggestion.description,
            values=list(suggestion.values),
            pattern=suggestion.pattern,
        )

    def _display_selection(self):
        click.echo(f"\n{Fore.GREEN}✅ Selected {len(self.selected)} parameter(s):")
        for suggestion in self.selected:
            click.echo(f"{Fore.GREEN}   • {self.describe(suggestion)}")
