"""Layered key/value configuration.

Sources are loaded in registration order into a single read-only view.
Keys are hierarchical paths joined with ``:`` and compared
case-insensitively; when two sources define the same key the later one wins.

Usage:
    configuration = (
        ConfigurationBuilder(base_dir)
        .add_json_file("appsettings.json", optional=True)
        .add_environment_variables(prefix="CONSOLEHOST_")
        .add_user_secrets("my-app", optional=True)
        .build()
    )
    name = configuration.get_section("appConfig").get("Name")
"""

import json
import os
import typing as t
from abc import ABC, abstractmethod
from pathlib import Path
from types import MappingProxyType

from ..domain.exceptions import ConfigurationError
from ..infrastructure.logging import get_logger

if t.TYPE_CHECKING:
    import loguru

KEY_DELIMITER = ":"
ENV_KEY_DELIMITER = "__"
USER_SECRETS_ROOT_ENV = "USER_SECRETS_ROOT"

# Lower-cased key -> (key as last written, value)
_Entries = t.Mapping[str, tuple[str, str]]


def combine_path(*segments: str) -> str:
    """Join non-empty key segments with the key delimiter."""
    return KEY_DELIMITER.join(segment for segment in segments if segment)


def flatten_json(value: t.Any, prefix: str = "") -> dict[str, str]:
    """Flatten parsed JSON into ``:``-joined keys with string values.

    Array elements are keyed by index. Booleans become ``true``/``false``,
    ``null`` becomes an empty string and numbers keep their JSON text.
    """
    if isinstance(value, dict):
        children: t.Iterable[tuple[str, t.Any]] = value.items()
    elif isinstance(value, list):
        children = ((str(index), item) for index, item in enumerate(value))
    elif value is None:
        return {prefix: ""}
    elif isinstance(value, bool):
        return {prefix: "true" if value else "false"}
    elif isinstance(value, (int, float)):
        return {prefix: json.dumps(value)}
    else:
        return {prefix: str(value)}

    flattened: dict[str, str] = {}
    for key, child in children:
        flattened.update(flatten_json(child, combine_path(prefix, str(key))))
    return flattened


class ConfigurationSource(ABC):
    """A single configuration layer."""

    @abstractmethod
    def load(self) -> dict[str, str]:
        """Return this layer's keys and values.

        Raises:
            ConfigurationError: If a required source is missing or malformed
        """


class JsonFileSource(ConfigurationSource):
    """Configuration layer read from a JSON object file."""

    def __init__(
        self,
        path: Path,
        optional: bool = True,
        logger: "loguru.Logger | None" = None,
    ) -> None:
        self.path = path
        self.optional = optional
        self._logger = logger or get_logger(__name__)

    def load(self) -> dict[str, str]:
        if not self.path.is_file():
            if self.optional:
                return {}
            raise ConfigurationError(
                f"The configuration file '{self.path}' was not found "
                "and is not optional"
            )

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            return self._malformed(f"could not be parsed: {e}", e)

        if not isinstance(data, dict):
            return self._malformed("must contain a JSON object at the top level")

        return flatten_json(data)

    def _malformed(
        self, reason: str, cause: Exception | None = None
    ) -> dict[str, str]:
        message = f"The configuration file '{self.path}' {reason}"
        if self.optional:
            self._logger.debug(f"Ignoring optional source: {message}")
            return {}
        raise ConfigurationError(message) from cause

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(path={str(self.path)!r}, "
            f"optional={self.optional})"
        )


class EnvironmentVariablesSource(ConfigurationSource):
    """Configuration layer read from environment variables.

    Only variables whose name starts with ``prefix`` (case-insensitive) are
    included, with the prefix stripped. ``__`` in a name maps to ``:``.
    """

    def __init__(
        self, prefix: str = "", environ: t.Mapping[str, str] | None = None
    ) -> None:
        self.prefix = prefix
        self._environ = environ

    def load(self) -> dict[str, str]:
        environ = os.environ if self._environ is None else self._environ
        prefix = self.prefix.lower()

        values: dict[str, str] = {}
        for name, value in environ.items():
            if not name.lower().startswith(prefix):
                continue
            key = name[len(prefix) :].replace(ENV_KEY_DELIMITER, KEY_DELIMITER)
            if key:
                values[key] = value
        return values

    def __repr__(self) -> str:
        return f"{type(self).__name__}(prefix={self.prefix!r})"


def user_secrets_path(secrets_id: str, root: Path | None = None) -> Path:
    """Locate the secrets file for ``secrets_id``.

    Without an explicit root, ``USER_SECRETS_ROOT`` is used when
    set, then the per-user secrets directory for the platform.
    """
    if root is None:
        override = os.environ.get(USER_SECRETS_ROOT_ENV)
        if override:
            root = Path(override)
        elif os.name == "nt" and os.environ.get("APPDATA"):
            root = Path(os.environ["APPDATA"]) / "Microsoft" / "UserSecrets"
        else:
            root = Path.home() / ".microsoft" / "usersecrets"
    return root / secrets_id / "secrets.json"


class UserSecretsSource(JsonFileSource):
    """Configuration layer read from a per-user secrets file."""

    def __init__(
        self,
        secrets_id: str,
        optional: bool = True,
        root: Path | None = None,
        logger: "loguru.Logger | None" = None,
    ) -> None:
        super().__init__(user_secrets_path(secrets_id, root), optional, logger)
        self.secrets_id = secrets_id


class InMemorySource(ConfigurationSource):
    """Configuration layer from a mapping, flattened like JSON."""

    def __init__(self, values: t.Mapping[str, t.Any]) -> None:
        self._values = dict(values)

    def load(self) -> dict[str, str]:
        return flatten_json(self._values)


class ConfigurationView:
    """Read-only access to the keys under a path prefix."""

    def __init__(self, entries: _Entries, path: str = "") -> None:
        self._entries = entries
        self._path = path

    def _absolute(self, key: str) -> str:
        return combine_path(self._path, key)

    def _items(self) -> t.Iterator[tuple[str, str]]:
        """Yield (relative key, value) for every key under this view."""
        prefix = f"{self._path}{KEY_DELIMITER}".lower() if self._path else ""
        for lowered, (key, value) in self._entries.items():
            if lowered.startswith(prefix) and len(lowered) > len(prefix):
                yield key[len(prefix) :], value

    def get(self, key: str, default: str | None = None) -> str | None:
        entry = self._entries.get(self._absolute(key).lower())
        return entry[1] if entry is not None else default

    def __getitem__(self, key: str) -> str:
        entry = self._entries.get(self._absolute(key).lower())
        if entry is None:
            raise KeyError(key)
        return entry[1]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self._absolute(key).lower() in self._entries

    def __iter__(self) -> t.Iterator[str]:
        return (key for key, _ in self._items())

    def __len__(self) -> int:
        return sum(1 for _ in self._items())

    def keys(self) -> list[str]:
        return list(self)

    def get_section(self, key: str) -> "ConfigurationSection":
        """Return the sub-view under ``key``; it may be empty."""
        return ConfigurationSection(self._entries, self._absolute(key))

    def get_children(self) -> list["ConfigurationSection"]:
        """Return the immediate child sections, in first-seen order."""
        heads: dict[str, str] = {}
        for key, _ in self._items():
            head = key.split(KEY_DELIMITER, 1)[0]
            heads.setdefault(head.lower(), head)
        return [self.get_section(head) for head in heads.values()]

    def as_dict(self) -> dict[str, t.Any]:
        """Return the keys under this view as a nested dict.

        When a key holds both a value and children, the children win.
        """
        nested: dict[str, t.Any] = {}
        for key, value in sorted(self._items(), key=lambda item: item[0].lower()):
            node = nested
            *parents, leaf = key.split(KEY_DELIMITER)
            for part in parents:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = node[part] = {}
                node = child
            if not isinstance(node.get(leaf), dict):
                node[leaf] = value
        return nested


class ConfigurationSection(ConfigurationView):
    """A named sub-view of a configuration root."""

    @property
    def path(self) -> str:
        return self._path

    @property
    def key(self) -> str:
        return self._path.rsplit(KEY_DELIMITER, 1)[-1]

    @property
    def value(self) -> str | None:
        """Value stored at this section's own path, if any."""
        entry = self._entries.get(self._path.lower())
        return entry[1] if entry is not None else None

    def exists(self) -> bool:
        return self.value is not None or len(self) > 0

    def __repr__(self) -> str:
        return f"ConfigurationSection(path={self._path!r}, keys={len(self)})"


class ConfigurationRoot(ConfigurationView):
    """Merged, read-only view over all configuration sources."""

    def __init__(self, sources: t.Sequence[ConfigurationSource]) -> None:
        merged: dict[str, tuple[str, str]] = {}
        for source in sources:
            for key, value in source.load().items():
                merged[key.lower()] = (key, value)

        super().__init__(MappingProxyType(merged))
        self._sources = tuple(sources)

    @property
    def sources(self) -> tuple[ConfigurationSource, ...]:
        return self._sources

    def __repr__(self) -> str:
        return f"ConfigurationRoot(sources={list(self._sources)!r}, keys={len(self)})"


class ConfigurationBuilder:
    """Fluent builder collecting configuration sources in priority order."""

    def __init__(
        self,
        base_dir: Path | None = None,
        logger: "loguru.Logger | None" = None,
    ) -> None:
        self.base_dir = base_dir if base_dir is not None else Path.cwd()
        self._sources: list[ConfigurationSource] = []
        self._logger = logger or get_logger(__name__)

    @property
    def sources(self) -> tuple[ConfigurationSource, ...]:
        return tuple(self._sources)

    def add(self, source: ConfigurationSource) -> "ConfigurationBuilder":
        self._sources.append(source)
        return self

    def add_json_file(
        self, path: Path | str, optional: bool = True
    ) -> "ConfigurationBuilder":
        resolved = Path(path)
        if not resolved.is_absolute():
            resolved = self.base_dir / resolved
        return self.add(JsonFileSource(resolved, optional, self._logger))

    def add_environment_variables(
        self, prefix: str = "", environ: t.Mapping[str, str] | None = None
    ) -> "ConfigurationBuilder":
        return self.add(EnvironmentVariablesSource(prefix, environ))

    def add_user_secrets(
        self, secrets_id: str, optional: bool = True, root: Path | None = None
    ) -> "ConfigurationBuilder":
        return self.add(UserSecretsSource(secrets_id, optional, root, self._logger))

    def add_in_memory(self, values: t.Mapping[str, t.Any]) -> "ConfigurationBuilder":
        return self.add(InMemorySource(values))

    def build(self) -> ConfigurationRoot:
        """Load every source and merge them; later sources win.

        Raises:
            ConfigurationError: If a required source is missing or malformed
        """
        root = ConfigurationRoot(self._sources)
        self._logger.debug(f"Configuration built from {len(self._sources)} sources")
        return root
