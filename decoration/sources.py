"""
Decoration - Configuration Sources.

============================================================
RESPONSIBILITY
============================================================
Read-only hierarchical key/value views over configuration data.

A source exposes:
- child_names()     : names of the sections below this node
- section(name)     : the sub-tree of a section (empty if missing)
- get(key, default) : a value of this node

Data is held as flat dotted keys, the way a properties file
stores it::

    bikes.type = bike-rental
    bikes.url = http://example.org/stations.json
    bikes.frequencySec = 60

Nested YAML mappings are flattened to the same shape.

============================================================
BACKING STORE
============================================================
FileSource reads its file lazily. Any I/O or parse failure is
raised as BackingStoreError, which the decorator treats as
fatal for the whole activation pass.

============================================================
"""

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union
import logging

import yaml

from core.exceptions import BackingStoreError


logger = logging.getLogger(__name__)


PathLike = Union[str, Path]

YAML_SUFFIXES = (".yaml", ".yml")


# ============================================================
# SOURCE PROTOCOL
# ============================================================

class ConfigSource(Protocol):
    """Protocol every configuration source implements."""

    name: str
    path: str

    def child_names(self) -> List[str]:
        """Section names below this node. May raise BackingStoreError."""
        ...

    def section(self, name: str) -> "ConfigSource":
        """Sub-tree for a section name."""
        ...

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Value of a key of this node."""
        ...


# ============================================================
# VALUE HELPERS
# ============================================================

def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_to_text(v) for v in value)
    return str(value)


def flatten_mapping(data: Mapping[str, Any], prefix: str = "") -> Dict[str, str]:
    """
    Flatten a nested mapping into dotted keys.

    Keys must not contain a dot themselves: "my.feed" would be read
    back as section "my", key "feed".

    Raises:
        ValueError: A key contains a dot

    >>> flatten_mapping({"bikes": {"type": "bike-rental", "enabled": True}})
    {'bikes.type': 'bike-rental', 'bikes.enabled': 'true'}
    """
    result: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if "." in str(key):
            raise ValueError(f"Key must not contain '.': {full_key!r}")
        if isinstance(value, Mapping):
            result.update(flatten_mapping(value, full_key))
        else:
            result[full_key] = _to_text(value)
    return result


def parse_properties(text: str) -> Dict[str, str]:
    """
    Parse properties-file text.

    Supports ``key=value`` and ``key: value`` lines and ``#``/``!``
    comments. Line continuations and escapes are not supported.
    """
    result: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line[0] in "#!":
            continue

        separators = [pos for pos in (line.find("="), line.find(":")) if pos >= 0]
        if not separators:
            result[line] = ""
            continue

        sep = min(separators)
        result[line[:sep].strip()] = line[sep + 1:].strip()
    return result


def read_properties(path: PathLike) -> Dict[str, str]:
    """
    Load a YAML or properties file into flat dotted keys.

    Raises:
        BackingStoreError: File unreadable or malformed
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise BackingStoreError(
            message=f"Can't read configuration file: {file_path}",
            location=str(file_path),
            cause=e,
        )

    if file_path.suffix.lower() not in YAML_SUFFIXES:
        return parse_properties(text)

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise BackingStoreError(
            message=f"Malformed YAML configuration: {file_path}",
            location=str(file_path),
            cause=e,
        )

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise BackingStoreError(
            message=f"Top-level YAML value must be a mapping: {file_path}",
            location=str(file_path),
        )

    try:
        return flatten_mapping(data)
    except ValueError as e:
        raise BackingStoreError(
            message=f"Unsupported YAML configuration: {file_path}: {e}",
            location=str(file_path),
            cause=e,
        )


# ============================================================
# IN-MEMORY SOURCE
# ============================================================

class PropertiesSource:
    """Source backed by an in-memory mapping of dotted keys."""

    def __init__(
        self,
        properties: Mapping[str, Any],
        name: str = "",
        path: str = "",
    ) -> None:
        self._properties = {str(k).strip(): _to_text(v) for k, v in properties.items()}
        self.name = name
        self.path = path

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], name: str = "") -> "PropertiesSource":
        """Build a source from a nested mapping."""
        return cls(flatten_mapping(data), name=name, path=name)

    def child_names(self) -> List[str]:
        names: List[str] = []
        for key in self._properties:
            head, dot, _ = key.partition(".")
            if dot and head and head not in names:
                names.append(head)
        return names

    def section(self, name: str) -> "PropertiesSource":
        prefix = f"{name}."
        sub = {
            key[len(prefix):]: value
            for key, value in self._properties.items()
            if key.startswith(prefix)
        }
        path = f"{self.path}.{name}" if self.path else name
        return PropertiesSource(sub, name=name, path=path)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._properties.get(key, default)

    def keys(self) -> List[str]:
        """Keys held directly by this node."""
        return [key for key in self._properties if "." not in key]

    def to_dict(self) -> Dict[str, str]:
        return dict(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def __repr__(self) -> str:
        return f"PropertiesSource(path={self.path!r}, keys={len(self._properties)})"


# ============================================================
# FILE SOURCE
# ============================================================

class FileSource:
    """
    Source backed by a YAML or properties file.

    The file is read on first access and cached.
    """

    def __init__(self, file_path: PathLike, name: str = "") -> None:
        self.file_path = Path(file_path)
        self.name = name
        self.path = name
        self._loaded: Optional[PropertiesSource] = None

    def _load(self) -> PropertiesSource:
        if self._loaded is None:
            properties = read_properties(self.file_path)
            self._loaded = PropertiesSource(properties, name=self.name, path=self.path)
            logger.debug(f"Loaded {len(properties)} keys from {self.file_path}")
        return self._loaded

    def child_names(self) -> List[str]:
        return self._load().child_names()

    def section(self, name: str) -> PropertiesSource:
        return self._load().section(name)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._load().get(key, default)

    def __repr__(self) -> str:
        return f"FileSource({str(self.file_path)!r})"


def load_source(path: PathLike) -> FileSource:
    """Create a lazily-read source for a configuration file."""
    return FileSource(path)


__all__ = [
    "ConfigSource",
    "PropertiesSource",
    "FileSource",
    "flatten_mapping",
    "parse_properties",
    "read_properties",
    "load_source",
]
