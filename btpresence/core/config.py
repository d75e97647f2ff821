"""Scan configuration loading and validation for JSON or YAML config files."""

from __future__ import annotations

import json
import logging
import os
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from btpresence.core.errors import ConfigLoadError, ConfigValidationError, MissingModeError
from btpresence.core.model import ScanConfig, ScanMode

MODE_KEY = "instant_scan"
_CONFIG_NAMES = ("config.json", "config.yaml", "config.yml")
_YAML_SUFFIXES = {".yml", ".yaml"}
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def _load_schema_validator() -> Any:
    schema_text = resources.files("btpresence.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _config_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return Path.cwd(), xdg_config / "btpresence"


def find_config() -> Path:
    """Return the first existing config file in the working directory or the XDG config dir."""
    searched: list[str] = []
    for directory in _config_dirs():
        for name in _CONFIG_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
            searched.append(str(candidate))
    raise ConfigLoadError(f"No configuration file found. Searched: {', '.join(searched)}")


def _read_document(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigLoadError(f"Could not read config file {path}: {exc}") from exc

    if path.suffix.lower() in _YAML_SUFFIXES:
        try:
            loaded = yaml.load(content, Loader=UniqueKeyLoader)
        except yaml.YAMLError as exc:
            raise ConfigLoadError(f"Invalid YAML in {path}: {exc}") from exc
    else:
        try:
            loaded = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ConfigLoadError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigValidationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _normalize_bool(value: Any, *, context: str, allow_strings: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if allow_strings and isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    raise ConfigValidationError(f"{context} must be boolean true/false")


def _is_yaml(source: Path | str) -> bool:
    return Path(str(source)).suffix.lower() in _YAML_SUFFIXES


def build_config(doc: dict[str, Any], source: Path | str = "<config>") -> ScanConfig:
    """Validate a parsed configuration document and turn it into a ``ScanConfig``.

    Keys the scanner does not use are logged and ignored. Quoted ``"true"`` /
    ``"false"`` are accepted for the mode flag only from YAML sources, whose
    loader leaves booleans as strings.
    """
    if MODE_KEY not in doc:
        raise MissingModeError(f"'{MODE_KEY}' does not exist in {source}; no scan was started")

    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    known = set(validator.schema["properties"])
    for key in sorted(str(k) for k in doc if k not in known):
        LOGGER.warning("Ignoring unknown config key '%s' in %s", key, source)

    instant = _normalize_bool(
        doc[MODE_KEY],
        context=f"{source}.{MODE_KEY}",
        allow_strings=_is_yaml(source),
    )
    oui_path = doc.get("oui_path")
    return ScanConfig(
        mode=ScanMode.INSTANT if instant else ScanMode.SCHEDULED,
        start_after_duration=int(doc.get("start_after_duration", 0)),
        scan_duration=int(doc.get("scan_duration", 0)),
        instant_window=float(doc.get("instant_window", 5.0)),
        poll_interval=float(doc.get("poll_interval", 0.5)),
        gap_tolerance=int(doc.get("gap_tolerance", 5)),
        output_dir=Path(doc.get("output_dir", ".")),
        oui_path=Path(oui_path) if oui_path else None,
        adapter=doc.get("adapter"),
    )


def load_config(path: Path | None = None) -> ScanConfig:
    source = path if path is not None else find_config()
    LOGGER.debug("Loading configuration from %s", source)
    return build_config(_read_document(source), source)
