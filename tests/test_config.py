# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from sitemap_streams.config import SitemapConfig, load_config
from sitemap_streams.models import ErrorLevel, XmlnsOptions


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("hostname: http://example.com\ncount_limit: 100", ".yaml", None),
        (json.dumps({"hostname": "http://example.com", "count_limit": 100}), ".json", None),
        ("count_limit: 0", ".yaml", ValidationError),
        ("byte_limit: 60000000", ".yml", ValidationError),
        ("unknown_field: 1", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- a\n- b", ".yaml", TypeError),
        ("{not json", ".json", ValueError),
        ("[1, 2]", ".json", TypeError),
        ("count_limit = 1", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, SitemapConfig)
        # Strip trailing slash for comparison
        assert str(cfg.hostname).rstrip("/") == "http://example.com"
        assert cfg.count_limit == 100


def test_load_config_default_missing(tmp_path, monkeypatch):
    # Without configs/default.yaml the built-in defaults are used
    monkeypatch.chdir(tmp_path)
    cfg = load_config(None)
    assert cfg == SitemapConfig()
    assert cfg.count_limit == 45_000
    assert cfg.byte_limit == 45 * 1024 * 1024
    assert cfg.level is ErrorLevel.WARN
    assert cfg.index_filename == "sitemap-index.xml"


def test_load_config_default_present(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text(
        "gzip: true\nlevel: throw\nxmlns: {video: false}", encoding="utf-8"
    )
    cfg = load_config(None)
    assert cfg.gzip is True
    assert cfg.level is ErrorLevel.THROW
    assert cfg.xmlns.to_options() == XmlnsOptions(video=False)


def test_explicit_config_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_blank_xsl_url_is_none():
    assert SitemapConfig(xsl_url="  ").xsl_url is None
    assert SitemapConfig(xsl_url="/style.xsl").xsl_url == "/style.xsl"


def test_config_is_frozen():
    cfg = SitemapConfig()
    with pytest.raises(ValidationError):
        cfg.count_limit = 5
