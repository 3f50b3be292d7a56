"""Heuristic detection of topic parameters from topic variability."""
import logging
import re
from typing import Dict, Iterable, List, Union

from asyncapi_gen.config import TopicSubstitution
from asyncapi_gen.mapper.channels import TOPIC_SEPARATOR
from asyncapi_gen.schema.models import ExtractedMessage

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
NUMERIC_PATTERN = re.compile(r"^\d+$", re.ASCII)


class ParameterDetector:
    """Propose substitution rules for topic levels that vary."""

    # Checked in order; the first substring found in any segment names the parameter
    COMMON_NAME_HINTS = {
        "machine": "machineId",
        "area": "areaId",
        "line": "lineId",
    }

    def __init__(self, min_variants: int = 2):
        """
        Args:
            min_variants: Distinct segments needed at a level to propose it
        """
        if min_variants < 1:
            raise ValueError(f"min_variants must be >= 1, got {min_variants}")
        self.min_variants = min_variants

    def detect(self, topics: Iterable[str]) -> List[TopicSubstitution]:
        """
        Propose one rule per level whose distinct-segment count reaches min_variants.

        The name is a guess; the description always states the level and
        the variant count so it can be renamed by hand.
        """
        segments_by_level = self._collect_segments(topics)
        suggestions = []

        for level in sorted(segments_by_level):
            values = sorted(segments_by_level[level])
            if len(values) < self.min_variants:
                continue

            suggestions.append(
                TopicSubstitution(
                    level_index=level,
                    parameter_name=self.infer_parameter_name(values, level),
                    values=values,
                    description=f"Parameter at level {level} with {len(values)} variants",
                )
            )

        logger.info(f"Detected {len(suggestions)} candidate parameters")
        return suggestions

    @staticmethod
    def _collect_segments(topics: Iterable[str]) -> Dict[int, set]:
        segments_by_level: Dict[int, set] = {}
        for topic in topics:
            for level, segment in enumerate(topic.split(TOPIC_SEPARATOR)):
                segments_by_level.setdefault(level, set()).add(segment)
        return segments_by_level

    def infer_parameter_name(self, values: List[str], level: int) -> str:
        """Guess a parameter name from the segments seen at one level."""
        if values and all(UUID_PATTERN.match(v) for v in values):
            return "uuid"

        if values and all(NUMERIC_PATTERN.match(v) for v in values):
            return "id"

        for hint, name in self.COMMON_NAME_HINTS.items():
            if any(hint in v.lower() for v in values):
                return name

        return f"param{level}"


def detect_parameters(
    messages: Iterable[Union[ExtractedMessage, str]],
    min_variants: int = 2,
) -> List[TopicSubstitution]:
    """Detect parameters from messages or bare topic strings."""
    topics = [m.topic if isinstance(m, ExtractedMessage) else m for m in messages]
    return ParameterDetector(min_variants).detect(topics)
