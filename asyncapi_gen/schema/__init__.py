from .models import (
    Channel,
    ExtractedMessage,
    ParameterDefinition,
    SchemaEntry,
    SchemaFragment,
)

__all__ = [
    "Channel",
    "ExtractedMessage",
    "ParameterDefinition",
    "SchemaEntry",
    "SchemaFragment",
]
