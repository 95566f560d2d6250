"""
cli.py

Responsibility: CLI entrypoint for tapchannels.

High-level flow:
1) Read VERSION / PRERELEASE from the environment -> `Version`
2) Load the publish configuration (bundled defaults or --config)
3) Publish every channel of every template kind under --root
4) Exit 0, or 1 with a diagnostic on stderr

This module should orchestrate behavior but keep concerns isolated:
- Version rules: `versioning.py`
- Configuration: `config.py`
- Text rewriting: `renderer.py`
- Filesystem: `publisher.py`
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import NoReturn

from tapchannels import __version__
from tapchannels.config import ConfigError, load_config
from tapchannels.log import setup_logging
from tapchannels.publisher import MissingInputError, publish
from tapchannels.renderer import TemplateShapeError
from tapchannels.versioning import InvalidVersionError, Version, parse_prerelease_flag, parse_version

logger = logging.getLogger(__name__)

VERSION_ENV = "VERSION"
PRERELEASE_ENV = "PRERELEASE"


def _require_env(env: Mapping[str, str], name: str) -> str:
    # An empty value counts as missing.
    value = env.get(name) or ""
    if not value:
        raise MissingInputError(f"{name} env var is required")
    return value


def version_from_env(env: Mapping[str, str]) -> Version:
    raw = _require_env(env, VERSION_ENV)
    prerelease = parse_prerelease_flag(_require_env(env, PRERELEASE_ENV))
    return parse_version(raw, prerelease=prerelease)


def publish_cmd(args: argparse.Namespace, env: Mapping[str, str]) -> int:
    version = version_from_env(env)
    config = load_config(args.config)

    logger.info(
        "publishing %s %s (%s)",
        config.package,
        version.full,
        "prerelease" if version.prerelease else "stable",
    )
    result = publish(args.root, version, config, dry_run=bool(args.dry_run))

    for kind in result.kinds:
        if kind.skipped:
            logger.info("%s: skipped", kind.kind)
    return 0


class _ArgumentParser(argparse.ArgumentParser):
    # Usage errors exit 1 like every other failure, not argparse's 2.
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(
        prog="tapchannels",
        description=(
            "Generate versioned Homebrew cask/formula files from templates. "
            f"Reads ${VERSION_ENV} and ${PRERELEASE_ENV} from the environment."
        ),
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Repository root holding the kind directories (default: .)")
    p.add_argument("--config", default=None, help="YAML publish configuration (default: bundled sentrie setup)")
    p.add_argument("--dry-run", action="store_true", help="Render and report without writing or deleting files")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (or set TAPCHANNELS_LOG_LEVEL)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: list[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    try:
        return int(publish_cmd(args, os.environ if env is None else env))
    except (MissingInputError, InvalidVersionError, TemplateShapeError, ConfigError, OSError) as e:
        logger.error("error: %s", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
