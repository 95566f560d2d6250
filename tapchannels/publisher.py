"""
publisher.py

Responsibility: Orchestrate one publish run against a repository checkout.

High-level flow:
1) Locate each kind's directory and template (required kinds must exist)
2) Render every channel of every kind in memory
3) Write all outputs, then delete each consumed template

Nothing is written until step 2 has succeeded for every kind, so a bad version or
a drifted template leaves the checkout untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from tapchannels.config import KindConfig, PublishConfig
from tapchannels.renderer import RenderedFile, render_kind
from tapchannels.versioning import Version, enumerate_channels

logger = logging.getLogger(__name__)


class MissingInputError(RuntimeError):
    pass


@dataclass(frozen=True)
class KindPlan:
    kind: KindConfig
    directory: Path
    template_path: Path
    files: list[RenderedFile]


@dataclass
class KindResult:
    kind: str
    written: list[Path] = field(default_factory=list)
    removed: Path | None = None
    skipped: bool = False


@dataclass(frozen=True)
class PublishResult:
    kinds: tuple[KindResult, ...]
    dry_run: bool = False

    @property
    def written(self) -> list[Path]:
        return [p for k in self.kinds for p in k.written]

    def for_kind(self, name: str) -> KindResult:
        for k in self.kinds:
            if k.kind == name:
                return k
        raise KeyError(name)


def _locate_template(root: Path, kind: KindConfig) -> Path | None:
    """
    Return the template path for `kind`, None for an absent optional kind.
    """
    directory = root / kind.directory
    template_path = directory / kind.template

    if not directory.is_dir():
        if kind.required:
            raise MissingInputError(f"base dir not found: {directory}")
        logger.info("%s: directory %s not found, skipping", kind.name, directory)
        return None

    if not template_path.is_file():
        if kind.required:
            raise MissingInputError(f"{kind.name} template not found: {template_path}")
        logger.info("%s: template %s not found, skipping", kind.name, template_path)
        return None

    return template_path


def plan(root: str | Path, version: Version, config: PublishConfig) -> list[KindPlan | KindResult]:
    """
    Resolve and render every kind without touching the filesystem.

    Returns one entry per configured kind: a KindPlan to execute, or a skipped
    KindResult for an absent optional kind.
    """
    root_dir = Path(root)
    if not root_dir.is_dir():
        raise MissingInputError(f"root dir not found: {root_dir}")

    channels = enumerate_channels(version)
    logger.debug("channels for %s: %s", version.raw, ", ".join(c.kind.value for c in channels))

    located = [(kind, _locate_template(root_dir, kind)) for kind in config.kinds]

    entries: list[KindPlan | KindResult] = []
    for kind, template_path in located:
        if template_path is None:
            entries.append(KindResult(kind=kind.name, skipped=True))
            continue
        try:
            source = template_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise MissingInputError(f"{kind.name} template is not valid UTF-8: {template_path}") from e
        files = render_kind(source, kind=kind, config=config, channels=channels)
        entries.append(
            KindPlan(kind=kind, directory=template_path.parent, template_path=template_path, files=files)
        )
    return entries


def _execute(kind_plan: KindPlan, *, dry_run: bool) -> KindResult:
    result = KindResult(kind=kind_plan.kind.name)
    for rendered in kind_plan.files:
        dst_path = kind_plan.directory / rendered.name
        if not dry_run:
            dst_path.write_text(rendered.text, encoding="utf-8", newline="\n")
        logger.info("%s %s", "would write" if dry_run else "wrote", dst_path)
        result.written.append(dst_path)

    # A template named like an output (e.g. sentrie.rb) has just been overwritten.
    if kind_plan.template_path in result.written:
        return result
    if not dry_run:
        kind_plan.template_path.unlink()
    logger.info("%s template %s", "would remove" if dry_run else "removed", kind_plan.template_path)
    result.removed = kind_plan.template_path
    return result


def publish(
    root: str | Path,
    version: Version,
    config: PublishConfig,
    *,
    dry_run: bool = False,
) -> PublishResult:
    """
    Generate every channel file for every configured kind under `root`.

    Raises MissingInputError, TemplateShapeError or ConfigError before anything is
    written.
    """
    entries = plan(root, version, config)
    results = [e if isinstance(e, KindResult) else _execute(e, dry_run=dry_run) for e in entries]
    return PublishResult(kinds=tuple(results), dry_run=dry_run)
