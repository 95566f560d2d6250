"""
config.py

Responsibility: Load and validate the publish configuration into a typed model.

The configuration describes *what* gets published (package name, template kinds,
rewrite rules, output naming); `renderer.py` and `publisher.py` treat the parsed
result as the single source of truth.

Without an explicit file the bundled `defaults.yaml` (the sentrie cask + formula
setup) is used.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

ANCHORS = ("none", "line")
COUNTS = ("first", "all")

_WORD_SPLIT_RE = re.compile(r"[^A-Za-z0-9]+")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class RewriteRule:
    """A single token replacement applied to versioned channels.

    `find` and `replace` are Jinja2 strings rendered per channel.
    """

    find: str
    replace: str
    anchor: str = "none"
    count: str = "first"


@dataclass(frozen=True)
class CommentConfig:
    marker: str = "#"
    drop_blank: bool = True


@dataclass(frozen=True)
class KindConfig:
    """One template kind (cask-like or formula-like) and how to publish it."""

    name: str
    directory: str
    template: str
    required: bool = True
    default_output: str = "{{ package }}.rb"
    channel_output: str = "{{ package }}@{{ token }}.rb"
    rewrites: tuple[RewriteRule, ...] = ()


@dataclass(frozen=True)
class PublishConfig:
    package: str
    class_name: str
    comments: CommentConfig = field(default_factory=CommentConfig)
    kinds: tuple[KindConfig, ...] = ()


def default_class_name(package: str) -> str:
    """
    Derive a Ruby class name from a package name: "sentrie" -> "Sentrie",
    "my-tool" -> "MyTool".
    """
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SPLIT_RE.split(package) if part)


def _require_str(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ConfigError(f"{where}: `{key}` is required.")
    return str(value)


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{where} must be an object/mapping when provided.")
    return value


def _optional_bool(data: dict[str, Any], key: str, default: bool, where: str) -> bool:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"{where}: `{key}` must be true or false (got {value!r}).")
    return value


def _parse_rule(raw: Any, where: str) -> RewriteRule:
    data = _require_mapping(raw, where)
    anchor = str(data.get("anchor") or "none").strip()
    if anchor not in ANCHORS:
        raise ConfigError(f"{where}: `anchor` must be one of {', '.join(ANCHORS)} (got {anchor!r}).")
    count = str(data.get("count") or "first").strip()
    if count not in COUNTS:
        raise ConfigError(f"{where}: `count` must be one of {', '.join(COUNTS)} (got {count!r}).")
    return RewriteRule(
        find=_require_str(data, "find", where),
        replace=_require_str(data, "replace", where),
        anchor=anchor,
        count=count,
    )


def _parse_kind(raw: Any, index: int) -> KindConfig:
    data = _require_mapping(raw, f"kinds[{index}]")
    name = _require_str(data, "name", f"kinds[{index}]").strip()
    where = f"kind {name!r}"

    directory = _require_str(data, "directory", where).strip()
    template = _require_str(data, "template", where).strip()

    # A kind without rules would publish versioned files under the bare name.
    rules_raw = data.get("rewrites")
    if not isinstance(rules_raw, list) or not rules_raw:
        raise ConfigError(f"{where}: `rewrites` must be a non-empty list.")

    defaults = KindConfig(name=name, directory="", template="")
    return KindConfig(
        name=name,
        directory=directory,
        template=template,
        required=_optional_bool(data, "required", True, where),
        default_output=str(data.get("default_output") or defaults.default_output),
        channel_output=str(data.get("channel_output") or defaults.channel_output),
        rewrites=tuple(_parse_rule(r, f"{where} rewrites[{i}]") for i, r in enumerate(rules_raw)),
    )


def parse_config(data: Any) -> PublishConfig:
    """
    Validate an already-loaded YAML document into a `PublishConfig`.

    Expected keys:
    - package: str (required)
    - class_name: str (defaults to the capitalised package name)
    - comments.marker: str, comments.drop_blank: bool
    - kinds: list of {name, directory, template, required, default_output,
      channel_output, rewrites: [{find, replace, anchor, count}]}
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping/object at the top level.")

    package = _require_str(data, "package", "configuration").strip()
    class_name = str(data.get("class_name") or default_class_name(package)).strip()

    comments_raw = _require_mapping(data.get("comments"), "`comments`")
    marker = str(comments_raw.get("marker") or "#")
    if marker.strip() != marker:
        raise ConfigError("`comments.marker` must not contain leading or trailing whitespace.")
    comments = CommentConfig(marker=marker, drop_blank=_optional_bool(comments_raw, "drop_blank", True, "`comments`"))

    kinds_raw = data.get("kinds")
    if not isinstance(kinds_raw, list) or not kinds_raw:
        raise ConfigError("`kinds` must be a non-empty list.")
    kinds = tuple(_parse_kind(k, i) for i, k in enumerate(kinds_raw))

    names = [k.name for k in kinds]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate kind names: {', '.join(duplicates)}")

    return PublishConfig(package=package, class_name=class_name, comments=comments, kinds=kinds)


def load_config(path: str | Path | None = None) -> PublishConfig:
    """
    Load a YAML publish configuration from `path`, or the bundled defaults when `path`
    is None.
    """
    if path is None:
        text = resources.files("tapchannels").joinpath("defaults.yaml").read_text(encoding="utf-8")
    else:
        cfg_path = Path(path)
        if not cfg_path.is_file():
            raise ConfigError(f"Config file does not exist: {cfg_path}")
        try:
            text = cfg_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConfigError(f"Config file is not valid UTF-8: {cfg_path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Config is not valid YAML: {e}") from e
    return parse_config(data)
