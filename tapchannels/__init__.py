"""
tapchannels package

This package publishes one binary to a Homebrew tap across several release channels
(full version, major.minor, major and the default unversioned channel).

Key responsibilities are split across modules:
- `versioning.py`: parse/validate the release version and enumerate its channels
- `config.py`: load the publish configuration (template kinds, rewrite rules)
- `renderer.py`: deterministic per-channel text rewriting and comment stripping
- `publisher.py`: filesystem orchestration (checks -> render -> write -> delete template)
- `log.py`: logging setup
- `cli.py`: CLI entrypoint reading VERSION / PRERELEASE from the environment
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
