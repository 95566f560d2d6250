"""
renderer.py

Responsibility: Deterministically derive per-channel file contents from a template text.

Rules:
- Versioned channels apply the kind's rewrite rules in order; every rule must match.
- The default channel applies no rules.
- Every output is comment-stripped (line-based: a marker mid-line is kept).
- Rule strings and output names are Jinja2 templates rendered with a per-channel context.

This module intentionally does NOT read or write files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from tapchannels.config import CommentConfig, ConfigError, KindConfig, PublishConfig, RewriteRule
from tapchannels.versioning import Channel

logger = logging.getLogger(__name__)

_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


class TemplateShapeError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderedFile:
    name: str
    text: str
    channel: Channel


def channel_context(config: PublishConfig, channel: Channel) -> dict[str, Any]:
    # `version` keeps its dots (binary names); `token` is the filesystem-safe form.
    # Neither exists for the default channel, so referencing them there is an error.
    context: dict[str, Any] = {
        "package": config.package,
        "class_name": config.class_name,
        "channel": channel.kind.value,
    }
    if not channel.is_default:
        context["version"] = channel.version
        context["token"] = channel.token
    return context


def render_string(text: str, context: dict[str, Any]) -> str:
    try:
        return _env.from_string(text).render(**context)
    except TemplateError as e:
        raise ConfigError(f"Failed rendering {text!r}: {e}") from e


def strip_comment_lines(text: str, comments: CommentConfig | None = None) -> str:
    """
    Drop lines that, once trimmed, start with the comment marker (and blank lines,
    unless `comments.drop_blank` is off). Kept lines retain their line endings.
    """
    comments = comments or CommentConfig()
    kept: list[str] = []
    for line in text.splitlines(keepends=True):
        trimmed = line.strip()
        if not trimmed:
            if comments.drop_blank:
                continue
        elif trimmed.startswith(comments.marker):
            continue
        kept.append(line)
    return "".join(kept)


def apply_rule(text: str, rule: RewriteRule, context: dict[str, Any]) -> str:
    """
    Apply one rewrite rule, raising TemplateShapeError if its token is absent.

    Matching is literal; `anchor: line` additionally requires the token to start a line.
    """
    find = render_string(rule.find, context)
    replacement = render_string(rule.replace, context)

    pattern = re.escape(find)
    if rule.anchor == "line":
        pattern = "^" + pattern
    out, n = re.subn(
        pattern,
        lambda _m: replacement,
        text,
        count=1 if rule.count == "first" else 0,
        flags=re.MULTILINE,
    )
    if n == 0:
        raise TemplateShapeError(f"token {find!r} not found in template")
    logger.debug("replaced %d occurrence(s) of %r with %r", n, find, replacement)
    return out


def rewrite_for_channel(source: str, kind: KindConfig, config: PublishConfig, channel: Channel) -> str:
    """
    Produce the content of `channel`'s file for `kind` from the raw template `source`.
    """
    text = source
    if not channel.is_default:
        context = channel_context(config, channel)
        for rule in kind.rewrites:
            try:
                text = apply_rule(text, rule, context)
            except TemplateShapeError as e:
                raise TemplateShapeError(
                    f"failed to rewrite {kind.name} for {config.package}@{channel.token}: {e}"
                ) from e
    return strip_comment_lines(text, config.comments)


def output_name(kind: KindConfig, config: PublishConfig, channel: Channel) -> str:
    template = kind.default_output if channel.is_default else kind.channel_output
    name = render_string(template, channel_context(config, channel))
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise ConfigError(f"kind {kind.name!r}: output name {name!r} is not a plain filename")
    return name


def render_kind(
    source: str,
    *,
    kind: KindConfig,
    config: PublishConfig,
    channels: list[Channel],
) -> list[RenderedFile]:
    """
    Render every channel of one template kind. Nothing is returned unless all
    channels render, so a template drift never yields a partial set.
    """
    rendered: list[RenderedFile] = []
    for channel in channels:
        rendered.append(
            RenderedFile(
                name=output_name(kind, config, channel),
                text=rewrite_for_channel(source, kind, config, channel),
                channel=channel,
            )
        )
    return rendered
