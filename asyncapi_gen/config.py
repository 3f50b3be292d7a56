"""Generator configuration."""
import json
import os
from dataclasses import dataclass, field, replace as dataclass_replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import yaml


class AsyncApiVersion(str, Enum):
    """Target document dialect."""

    V2_6 = "2.6.0"
    V3_0 = "3.0.0"


class ChannelMode(str, Enum):
    """How topics become channels."""

    VERBOSE = "verbose"
    PARAMETERIZED = "parameterized"


class OutputFormat(str, Enum):
    """Serialization format for generated documents."""

    YAML = "yaml"
    JSON = "json"


class InferenceDialect(str, Enum):
    """Object inference variant.

    STRICT marks every observed key as required (closed world).
    REPORT_BY_EXCEPTION marks nothing as required, drops ``_``-prefixed
    metadata keys and adds a synthetic ``_timestamp`` property.
    """

    STRICT = "strict"
    REPORT_BY_EXCEPTION = "report-by-exception"


class CollisionPolicy(str, Enum):
    """What the schema registry does when a name is taken by different content."""

    GENERALIZE = "generalize"  # merge into the existing entry, keep the name
    SUFFIX = "suffix"  # legacy: mint name_1, name_2, ...


SERVER_PROTOCOLS = ("mqtt", "mqtts", "ws", "wss")
TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0", "")


@dataclass
class TopicSubstitution:
    """Replaces one topic level with a ``{parameter}``."""

    level_index: int
    parameter_name: str
    description: Optional[str] = None
    values: List[str] = field(default_factory=list)  # explicit match set
    pattern: Optional[str] = None  # regex, used when values is empty

    def __post_init__(self):
        if self.level_index < 0:
            raise ValueError(f"level_index must be >= 0, got {self.level_index}")
        if not self.parameter_name:
            raise ValueError("parameter_name must not be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicSubstitution":
        """Build from a dict (snake_case or camelCase keys)."""
        return cls(
            level_index=int(_pick(data, "level_index", "levelIndex", default=0)),
            parameter_name=_pick(data, "parameter_name", "parameterName", default=""),
            description=data.get("description"),
            values=list(data.get("values") or []),
            pattern=data.get("pattern"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {
            "levelIndex": self.level_index,
            "parameterName": self.parameter_name,
        }
        if self.description:
            result["description"] = self.description
        if self.values:
            result["values"] = list(self.values)
        if self.pattern:
            result["pattern"] = self.pattern
        return result


@dataclass
class ServerConfig:
    """Named broker endpoint copied into the document."""

    name: str
    url: str
    protocol: str = "mqtt"
    description: Optional[str] = None
    username: Optional[str] = None  # enables the userPassword security scheme

    def __post_init__(self):
        if self.protocol not in SERVER_PROTOCOLS:
            raise ValueError(
                f"Unsupported server protocol: {self.protocol} "
                f"(expected one of {', '.join(SERVER_PROTOCOLS)})"
            )

    @property
    def host(self) -> str:
        """``host[:port]`` part of the URL, without scheme or credentials."""
        netloc = urlsplit(self.url).netloc
        return netloc.rsplit("@", 1)[-1] if netloc else self.url

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        return cls(
            name=data["name"],
            url=data["url"],
            protocol=data.get("protocol", "mqtt"),
            description=data.get("description"),
            username=data.get("username"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {"name": self.name, "url": self.url, "protocol": self.protocol}
        if self.description:
            result["description"] = self.description
        if self.username:
            result["username"] = self.username
        return result


@dataclass
class InfoConfig:
    """Document info block."""

    title: str = "Generated AsyncAPI"
    version: str = "1.0.0"
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {"title": self.title, "version": self.version}
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class GeneratorConfig:
    """Options that drive channel mapping, inference and assembly."""

    asyncapi_version: AsyncApiVersion = AsyncApiVersion.V3_0
    channel_mode: ChannelMode = ChannelMode.VERBOSE
    output_format: OutputFormat = OutputFormat.YAML
    topic_substitutions: List[TopicSubstitution] = field(default_factory=list)
    include_examples: bool = True
    dialect: InferenceDialect = InferenceDialect.STRICT
    collision_policy: CollisionPolicy = CollisionPolicy.GENERALIZE
    info: InfoConfig = field(default_factory=InfoConfig)
    servers: List[ServerConfig] = field(default_factory=list)

    def __post_init__(self):
        # Coerce plain strings so callers can pass "2.6.0", "parameterized", ...
        self.asyncapi_version = AsyncApiVersion(self.asyncapi_version)
        self.channel_mode = ChannelMode(self.channel_mode)
        self.output_format = OutputFormat(self.output_format)
        self.dialect = InferenceDialect(self.dialect)
        self.collision_policy = CollisionPolicy(self.collision_policy)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeneratorConfig":
        """
        Build a config from a plain mapping.

        Accepts the snake_case field names as well as the camelCase keys
        used by browser clients (``asyncApiVersion``, ``channelMode``,
        ``topicSubstitutions``, ...).

        Raises:
            ValueError: If an enum option has an unknown value
        """
        info_data = data.get("info") or {}
        defaults = cls()

        return cls(
            asyncapi_version=_pick(
                data, "asyncapi_version", "asyncApiVersion",
                default=defaults.asyncapi_version,
            ),
            channel_mode=_pick(data, "channel_mode", "channelMode", default=defaults.channel_mode),
            output_format=_pick(data, "output_format", "outputFormat", default=defaults.output_format),
            topic_substitutions=[
                TopicSubstitution.from_dict(s)
                for s in _pick(data, "topic_substitutions", "topicSubstitutions", default=[]) or []
            ],
            include_examples=_parse_bool(_pick(data, "include_examples", "includeExamples", default=True)),
            dialect=_pick(data, "dialect", default=defaults.dialect),
            collision_policy=_pick(data, "collision_policy", "collisionPolicy", default=defaults.collision_policy),
            info=InfoConfig(
                title=info_data.get("title", defaults.info.title),
                version=info_data.get("version", defaults.info.version),
                description=info_data.get("description"),
            ),
            servers=[ServerConfig.from_dict(s) for s in data.get("servers") or []],
        )

    @classmethod
    def from_file(cls, path: Path) -> "GeneratorConfig":
        """Load config from a YAML or JSON file."""
        path = Path(path)
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    def replace(self, **changes) -> "GeneratorConfig":
        """Return a copy with some fields changed."""
        return dataclass_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (camelCase, like the browser clients send it)."""
        return {
            "asyncApiVersion": self.asyncapi_version.value,
            "channelMode": self.channel_mode.value,
            "outputFormat": self.output_format.value,
            "topicSubstitutions": [s.to_dict() for s in self.topic_substitutions],
            "includeExamples": self.include_examples,
            "dialect": self.dialect.value,
            "collisionPolicy": self.collision_policy.value,
            "info": self.info.to_dict(),
            "servers": [s.to_dict() for s in self.servers],
        }


@dataclass
class AppConfig:
    """Application-level settings."""

    output_dir: str = "./output"
    default_format: str = "yaml"
    log_level: str = "WARNING"
    fetch_timeout: int = 30

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            output_dir=os.getenv("ASYNCAPI_GEN_OUTPUT_DIR", "./output"),
            default_format=os.getenv("ASYNCAPI_GEN_FORMAT", "yaml"),
            log_level=os.getenv("ASYNCAPI_GEN_LOG_LEVEL", "WARNING"),
            fetch_timeout=int(os.getenv("ASYNCAPI_GEN_FETCH_TIMEOUT", "30")),
        )


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
        raise ValueError(f"Expected a boolean, got {value!r}")
    return bool(value)


# Global instance
app_config = AppConfig.from_env()
