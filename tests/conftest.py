from __future__ import annotations

from pathlib import Path

import pytest

from tapchannels.config import PublishConfig, load_config

CASK_TEMPLATE = """\
# This file was generated by GoReleaser. DO NOT EDIT.
# typed: false
# frozen_string_literal: true
cask "sentrie" do
  name "sentrie"
  desc "Sentrie policy engine"
  homepage "https://sentrie.sh"
  version "1.2.3"

  binary "sentrie"

  on_macos do
    on_intel do
      url "https://github.com/sentrie-sh/sentrie/releases/download/v#{version}/sentrie_#{version}_darwin_amd64.tar.gz",
        verified: "github.com/sentrie-sh/sentrie"
      sha256 "test123"
    end
  end
end
"""

FORMULA_TEMPLATE = """\
# This file was generated by GoReleaser. DO NOT EDIT.
# typed: false
# frozen_string_literal: true
class Sentrie < Formula
  desc "Sentrie policy engine"
  homepage "https://sentrie.sh"
  version "1.2.3"
  license "Apache-2.0"

  on_macos do
    on_intel do
      url "https://github.com/sentrie-sh/sentrie/releases/download/v#{version}/sentrie_#{version}_darwin_amd64.tar.gz"
      sha256 "test123"
    end
  end

  def install
    bin.install "sentrie"
  end

  test do
    system "#{bin}/sentrie", "version"
  end
end
"""


def write_templates(
    root: Path,
    *,
    cask: str | None = CASK_TEMPLATE,
    formula: str | None = FORMULA_TEMPLATE,
) -> None:
    """Lay out Casks/ and Formula/ under `root`, with whichever templates are given."""
    for directory in ("Casks", "Formula"):
        (root / directory).mkdir(parents=True, exist_ok=True)
    if cask is not None:
        (root / "Casks" / "sentrie.rb.tmpl").write_text(cask, encoding="utf-8")
    if formula is not None:
        (root / "Formula" / "sentrie.rb.tmpl").write_text(formula, encoding="utf-8")


def generated(root: Path, directory: str) -> list[str]:
    return sorted(p.name for p in (root / directory).glob("*.rb"))


@pytest.fixture()
def config() -> PublishConfig:
    return load_config()


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    """A tap checkout holding both templates."""
    root = tmp_path / "tap"
    write_templates(root)
    return root
