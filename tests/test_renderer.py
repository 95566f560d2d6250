from __future__ import annotations

import pytest

from tapchannels.config import CommentConfig, ConfigError, KindConfig, PublishConfig, RewriteRule
from tapchannels.renderer import (
    TemplateShapeError,
    apply_rule,
    output_name,
    render_kind,
    rewrite_for_channel,
    strip_comment_lines,
)
from tapchannels.versioning import Channel, ChannelKind, enumerate_channels, parse_version

from .conftest import CASK_TEMPLATE, FORMULA_TEMPLATE


def _kind(config: PublishConfig, name: str) -> KindConfig:
    return next(k for k in config.kinds if k.name == name)


FULL = Channel(ChannelKind.FULL, "1.2.3")
DEFAULT = Channel(ChannelKind.DEFAULT)


def test_strip_comment_lines_drops_comments_and_blanks() -> None:
    text = "# top\n  # indented\nkeep me\n\n  value # trailing\n"
    assert strip_comment_lines(text) == "keep me\n  value # trailing\n"


def test_strip_comment_lines_can_keep_blank_lines() -> None:
    text = "# top\na\n\nb\n"
    assert strip_comment_lines(text, CommentConfig(drop_blank=False)) == "a\n\nb\n"


def test_strip_comment_lines_custom_marker() -> None:
    assert strip_comment_lines("// c\n# kept\n", CommentConfig(marker="//")) == "# kept\n"


def test_cask_versioned_rewrite(config: PublishConfig) -> None:
    out = rewrite_for_channel(CASK_TEMPLATE, _kind(config, "cask"), config, FULL)
    assert 'cask "sentrie@1_2_3" do' in out
    assert '  binary "sentrie", target: "sentrie@1.2.3"' in out
    assert 'cask "sentrie" do' not in out
    assert not any(line.strip().startswith("#") for line in out.splitlines())


def test_cask_binary_target_keeps_raw_version(config: PublishConfig) -> None:
    channel = Channel(ChannelKind.FULL, "0.0.2+git.abc123")
    out = rewrite_for_channel(CASK_TEMPLATE, _kind(config, "cask"), config, channel)
    assert 'cask "sentrie@0_0_2_git_abc123" do' in out
    assert 'target: "sentrie@0.0.2+git.abc123"' in out


def test_formula_versioned_rewrite(config: PublishConfig) -> None:
    out = rewrite_for_channel(FORMULA_TEMPLATE, _kind(config, "formula"), config, FULL)
    assert out.startswith("class SentrieAT1_2_3 < Formula\n")
    assert 'bin.install "sentrie" => "sentrie@1.2.3"' in out
    # Mid-line "#" is not a comment line.
    assert 'system "#{bin}/sentrie", "version"' in out


def test_formula_rewrites_every_install_block(config: PublishConfig) -> None:
    template = FORMULA_TEMPLATE.replace(
        '  def install\n    bin.install "sentrie"\n  end\n',
        '  def install\n    bin.install "sentrie"\n  end\n  on_linux do\n    bin.install "sentrie"\n  end\n',
    )
    out = rewrite_for_channel(template, _kind(config, "formula"), config, FULL)
    assert out.count('bin.install "sentrie" => "sentrie@1.2.3"') == 2


def test_default_channel_is_only_comment_stripped(config: PublishConfig) -> None:
    out = rewrite_for_channel(CASK_TEMPLATE, _kind(config, "cask"), config, DEFAULT)
    assert out == strip_comment_lines(CASK_TEMPLATE)
    assert 'cask "sentrie" do' in out
    assert '  binary "sentrie"\n' in out


def test_only_first_cask_declaration_is_rewritten(config: PublishConfig) -> None:
    template = CASK_TEMPLATE + 'cask "sentrie" do\nend\n'
    out = rewrite_for_channel(template, _kind(config, "cask"), config, FULL)
    assert out.count('cask "sentrie@1_2_3" do') == 1
    assert out.count('cask "sentrie" do') == 1


@pytest.mark.parametrize(
    ("kind", "old", "new"),
    [
        ("cask", 'binary "sentrie"', 'binary "other"'),
        ("cask", 'cask "sentrie" do', 'cask "other" do'),
        ("cask", '  binary "sentrie"', ""),
        ("cask", '  binary "sentrie"', 'binary "sentrie"'),
        ("cask", '  binary "sentrie"', '  # binary "sentrie"'),
        ("formula", "class Sentrie", "class Other"),
        ("formula", "class Sentrie < Formula", "# class Sentrie < Formula\nclass Other < Formula"),
        ("formula", 'bin.install "sentrie"', 'bin.install "other"'),
    ],
)
def test_template_drift_is_rejected(config: PublishConfig, kind: str, old: str, new: str) -> None:
    template = (CASK_TEMPLATE if kind == "cask" else FORMULA_TEMPLATE).replace(old, new)
    with pytest.raises(TemplateShapeError, match="failed to rewrite"):
        rewrite_for_channel(template, _kind(config, kind), config, FULL)


def test_apply_rule_line_anchor() -> None:
    rule = RewriteRule(find="class A", replace="class B", anchor="line")
    assert apply_rule("x class A\nclass A\n", rule, {}) == "x class A\nclass B\n"


def test_apply_rule_replacement_is_literal() -> None:
    rule = RewriteRule(find="a", replace=r"\1 \g<0>")
    assert apply_rule("a", rule, {}) == r"\1 \g<0>"


def test_undefined_rule_variable_is_a_config_error() -> None:
    rule = RewriteRule(find="{{ nope }}", replace="x")
    with pytest.raises(ConfigError):
        apply_rule("text", rule, {})


def test_output_names(config: PublishConfig) -> None:
    cask = _kind(config, "cask")
    assert output_name(cask, config, DEFAULT) == "sentrie.rb"
    assert output_name(cask, config, FULL) == "sentrie@1_2_3.rb"


def test_output_name_must_be_plain_filename(config: PublishConfig) -> None:
    kind = KindConfig(name="bad", directory="x", template="t", channel_output="../{{ token }}.rb")
    with pytest.raises(ConfigError):
        output_name(kind, config, FULL)


def test_render_kind_stable_release(config: PublishConfig) -> None:
    channels = enumerate_channels(parse_version("v1.2.3", prerelease=False))
    files = render_kind(FORMULA_TEMPLATE, kind=_kind(config, "formula"), config=config, channels=channels)
    assert [f.name for f in files] == ["sentrie@1_2_3.rb", "sentrie@1_2.rb", "sentrie@1.rb", "sentrie.rb"]
    by_name = {f.name: f.text for f in files}
    assert "class SentrieAT1_2 < Formula" in by_name["sentrie@1_2.rb"]
    assert "class SentrieAT1 < Formula" in by_name["sentrie@1.rb"]
    assert "class Sentrie < Formula" in by_name["sentrie.rb"]
