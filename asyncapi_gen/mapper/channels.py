"""Topic-to-channel mapping and topic parameterization."""
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from asyncapi_gen.config import ChannelMode, GeneratorConfig, TopicSubstitution
from asyncapi_gen.schema.models import Channel, ExtractedMessage, ParameterDefinition

logger = logging.getLogger(__name__)

TOPIC_SEPARATOR = "/"

_PARAMETER_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


@dataclass
class SubstitutionResult:
    """Outcome of applying substitution rules to one topic."""

    topic: str
    parameters: Dict[str, str] = field(default_factory=dict)  # name -> captured literal


def topic_to_channel_id(topic: str) -> str:
    """
    Convert a topic to a channel identifier.

    ``line/{lineId}/temp`` -> ``line_lineId_temp``
    """
    channel_id = _PARAMETER_PLACEHOLDER.sub(r"\1", topic)
    channel_id = re.sub(r"[/\-.]", "_", channel_id)
    channel_id = re.sub(r"_+", "_", channel_id)
    return channel_id.strip("_")


def _matches_substitution(value: str, substitution: TopicSubstitution) -> Optional[bool]:
    """
    Test a topic segment against a rule.

    Returns:
        True/False, or None when the rule's regex is invalid
    """
    if substitution.values:
        return value in substitution.values

    if substitution.pattern:
        try:
            return re.search(substitution.pattern, value) is not None
        except re.error as e:
            logger.warning(
                f"Skipping substitution '{substitution.parameter_name}': "
                f"invalid pattern {substitution.pattern!r} ({e})"
            )
            return None

    return True


def apply_substitutions(topic: str, substitutions: Iterable[TopicSubstitution]) -> SubstitutionResult:
    """
    Apply substitution rules, in order, to a literal topic

    Args:
        topic: Literal topic (e.g. ``plant/line3/temp``)
        substitutions: Rules; out-of-range levels and invalid patterns are skipped

    Returns:
        SubstitutionResult with the parameterized topic and captured values
    """
    parts = topic.split(TOPIC_SEPARATOR)
    parameters: Dict[str, str] = {}

    for substitution in substitutions:
        if substitution.level_index >= len(parts):
            continue

        segment = parts[substitution.level_index]
        if _matches_substitution(segment, substitution):
            parameters[substitution.parameter_name] = segment
            parts[substitution.level_index] = f"{{{substitution.parameter_name}}}"

    return SubstitutionResult(topic=TOPIC_SEPARATOR.join(parts), parameters=parameters)


def build_channels(messages: Iterable[ExtractedMessage], config: GeneratorConfig) -> List[Channel]:
    """Group messages into channels according to the configured channel mode."""
    if config.channel_mode == ChannelMode.PARAMETERIZED:
        channels = _build_parameterized_channels(messages, config.topic_substitutions)
    else:
        channels = _build_verbose_channels(messages)

    logger.info(f"Built {len(channels)} channels ({config.channel_mode.value} mode)")
    return channels


def _build_verbose_channels(messages: Iterable[ExtractedMessage]) -> List[Channel]:
    channel_map: Dict[str, Channel] = {}

    for message in messages:
        channel = channel_map.get(message.topic)
        if channel is None:
            channel = Channel(channel_id=topic_to_channel_id(message.topic), topic=message.topic)
            channel_map[message.topic] = channel
        channel.add_message(message)

    return list(channel_map.values())


def _build_parameterized_channels(
    messages: Iterable[ExtractedMessage],
    substitutions: List[TopicSubstitution],
) -> List[Channel]:
    channel_map: Dict[str, Channel] = {}

    for message in messages:
        result = apply_substitutions(message.topic, substitutions)

        channel = channel_map.get(result.topic)
        if channel is None:
            channel = Channel(channel_id=topic_to_channel_id(result.topic), topic=result.topic)
            channel_map[result.topic] = channel

        _attach_parameters(channel, result.parameters, substitutions)
        channel.add_message(message)

    return list(channel_map.values())


def _attach_parameters(
    channel: Channel,
    used: Dict[str, str],
    substitutions: List[TopicSubstitution],
) -> None:
    for name, value in used.items():
        definition = channel.parameters.get(name)
        if definition is None:
            rule = next((s for s in substitutions if s.parameter_name == name), None)
            definition = ParameterDefinition(
                description=rule.description if rule else None,
                enum=list(rule.values) if rule and rule.values else [],
            )
            channel.parameters[name] = definition
        definition.add_example(value)


def _pattern_regex(pattern: str) -> "re.Pattern[str]":
    parts = _PARAMETER_PLACEHOLDER.split(pattern)
    # split() alternates literal text and parameter names
    regex = "".join(
        re.escape(part) if i % 2 == 0 else "([^/]+)"
        for i, part in enumerate(parts)
    )
    return re.compile(f"^{regex}$")


def topic_matches_pattern(topic: str, pattern: str) -> bool:
    """Check if a literal topic fits a ``{param}`` template."""
    return _pattern_regex(pattern).match(topic) is not None


def extract_parameter_values(topic: str, pattern: str) -> Dict[str, str]:
    """Map parameter names of a template to the literal segments of a topic."""
    names = _PARAMETER_PLACEHOLDER.findall(pattern)
    match = _pattern_regex(pattern).match(topic)
    if not match:
        return {}
    return dict(zip(names, match.groups()))


def group_channels_by_prefix(channels: Iterable[Channel]) -> Dict[str, List[Channel]]:
    """Group channels by their first topic level."""
    groups: Dict[str, List[Channel]] = {}
    for channel in channels:
        parts = channel.topic.split(TOPIC_SEPARATOR)
        prefix = parts[0] if len(parts) > 1 else "root"
        groups.setdefault(prefix, []).append(channel)
    return groups
