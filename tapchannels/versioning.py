"""
versioning.py

Responsibility: Turn a release version string into the set of channels to publish.

Rules:
- Accept `MAJOR.MINOR.PATCH`, optionally prefixed with `v` and optionally followed by
  a `-prerelease` and/or `+build` suffix.
- Stable releases must be exactly `MAJOR.MINOR.PATCH`.
- Stable releases publish the full version, `major.minor`, `major` and the default channel.
  Prereleases publish the full version only.

This module intentionally does NOT touch templates or the filesystem.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

_CORE_RE = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+")
_SUFFIX_SPLIT_RE = re.compile(r"[-+]")
_TOKEN_UNSAFE_RE = re.compile(r"[^a-z0-9]+")


class InvalidVersionError(ValueError):
    pass


class ChannelKind(enum.Enum):
    FULL = "full"
    MAJOR_MINOR = "major_minor"
    MAJOR = "major"
    DEFAULT = "default"


@dataclass(frozen=True)
class Version:
    """A validated release version."""

    raw: str
    full: str
    core: str
    major: str
    minor: str
    prerelease: bool = False

    @property
    def major_minor(self) -> str:
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class Channel:
    """A release stream that gets its own generated file."""

    kind: ChannelKind
    version: str | None = None

    @property
    def is_default(self) -> bool:
        return self.kind is ChannelKind.DEFAULT

    @property
    def token(self) -> str | None:
        if self.version is None:
            return None
        return token_suffix(self.version)


def token_suffix(version: str) -> str:
    """
    Render a version string as a filename/identifier-safe token.

    Lowercases, collapses every run of characters outside [a-z0-9] into a single
    underscore and trims underscores from both ends:
    "1.0.0---alpha---" -> "1_0_0_alpha".
    """
    return _TOKEN_UNSAFE_RE.sub("_", version.lower()).strip("_")


def parse_prerelease_flag(value: str) -> bool:
    # Only the literal "true" marks a prerelease; "1", "yes", "maybe" are stable.
    return value == "true"


def parse_version(raw: str, *, prerelease: bool) -> Version:
    """
    Validate `raw` and derive its components.

    Raises InvalidVersionError when the core is not three numeric components, or when
    a stable release carries a prerelease/build suffix.
    """
    if raw != "".join(raw.split()):
        raise InvalidVersionError(f"Invalid VERSION: {raw!r} - whitespace is not allowed")

    full = raw[1:] if raw.startswith("v") else raw
    core = _SUFFIX_SPLIT_RE.split(full, maxsplit=1)[0]

    if not _CORE_RE.fullmatch(core):
        raise InvalidVersionError(f"Invalid VERSION core: {raw!r}")

    if not prerelease and full != core:
        raise InvalidVersionError(f"Invalid VERSION: {raw!r} - stable releases must be X.Y.Z")

    major, minor, _patch = core.split(".")
    return Version(raw=raw, full=full, core=core, major=major, minor=minor, prerelease=prerelease)


def enumerate_channels(version: Version) -> list[Channel]:
    """
    Return the channels to publish for `version`, in publish order.

    Prereleases never occupy the default slot or the coarse `major`/`major.minor` aliases.
    """
    channels = [Channel(ChannelKind.FULL, version.full)]
    if not version.prerelease:
        channels.append(Channel(ChannelKind.MAJOR_MINOR, version.major_minor))
        channels.append(Channel(ChannelKind.MAJOR, version.major))
        channels.append(Channel(ChannelKind.DEFAULT))
    return channels
