"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from scriptfilter.config import CoalesceSettings, WikiSettings


def test_coalesce_settings_read_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("WIKI_QUERY_CACHE_TTL_SECONDS", "15")
    monkeypatch.setenv("WIKI_QUERY_COALESCE_SETTLE_SECONDS", "0.75")
    monkeypatch.setenv("WIKI_QUERY_COALESCE_RERUN_SECONDS", "1")
    monkeypatch.setenv("WIKI_QUERY_STATE_DIR", str(tmp_path))

    settings = CoalesceSettings(_env_prefix="WIKI_")

    assert settings.ttl_seconds(10) == 15
    assert settings.settle_seconds(2) == 0.75
    assert settings.rerun_seconds(0.4) == 1.0
    assert settings.query_state_dir == tmp_path


def test_prefixes_do_not_leak_between_integrations(monkeypatch):
    monkeypatch.setenv("WIKI_QUERY_CACHE_TTL_SECONDS", "15")
    assert CoalesceSettings(_env_prefix="IMDB_").ttl_seconds(3) == 3


@pytest.mark.parametrize("raw", ["", "   ", "abc", "-5", "1.5", "1e3"])
def test_malformed_ttl_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("DEMO_QUERY_CACHE_TTL_SECONDS", raw)
    assert CoalesceSettings(_env_prefix="DEMO_").ttl_seconds(10) == 10


@pytest.mark.parametrize("raw, expected", [("0", 0.0), ("2", 2.0), (" 0.5\n", 0.5), ("-1", 2.0), ("soon", 2.0)])
def test_settle_seconds_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("DEMO_QUERY_COALESCE_SETTLE_SECONDS", raw)
    assert CoalesceSettings(_env_prefix="DEMO_").settle_seconds(2.0) == expected


def test_zero_values_are_kept():
    settings = CoalesceSettings(query_cache_ttl_seconds=0, query_coalesce_settle_seconds=0)
    assert settings.ttl_seconds(10) == 0
    assert settings.settle_seconds(2) == 0


def test_wiki_settings_defaults_and_endpoint(monkeypatch):
    monkeypatch.delenv("WIKI_LANGUAGE", raising=False)
    monkeypatch.delenv("WIKI_API_BASE_URL", raising=False)
    settings = WikiSettings()
    assert settings.endpoint() == "https://en.wikipedia.org/w/api.php"
    assert settings.article_url("Go (programming language)") == (
        "https://en.wikipedia.org/wiki/Go_(programming_language)"
    )


def test_wiki_article_url_follows_custom_api_host():
    settings = WikiSettings(language="en", api_base_url="http://localhost:8080/w/api.php")
    assert settings.endpoint() == "http://localhost:8080/w/api.php"
    assert settings.article_url("Rust language") == "http://localhost:8080/wiki/Rust_language"


def test_wiki_settings_normalizes_language(monkeypatch):
    monkeypatch.setenv("WIKI_LANGUAGE", " ZH ")
    assert WikiSettings().language == "zh"


def test_wiki_settings_rejects_invalid_values(monkeypatch):
    monkeypatch.setenv("WIKI_LANGUAGE", "not a language")
    with pytest.raises(ValidationError):
        WikiSettings()

    monkeypatch.setenv("WIKI_LANGUAGE", "en")
    monkeypatch.setenv("WIKI_MAX_RESULTS", "500")
    with pytest.raises(ValidationError):
        WikiSettings()
