"""Tests for environment template expansion."""

from __future__ import annotations

import logging

import pytest

from pgdump_scrambler.interpolation import resolve_template, resolve_templates


def test_braced_and_bare_variables() -> None:
    env = {"ENV_VAR": "secret123", "REGION": "eu-west-1"}
    assert resolve_template("${ENV_VAR}", env) == "secret123"
    assert resolve_template("s3-$REGION", env) == "s3-eu-west-1"


def test_missing_variable_expands_empty(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert resolve_template("key-${MISSING}", {}) == "key-"
    assert "MISSING" in caplog.text


def test_literal_dollar_kept() -> None:
    assert resolve_template("price $5 and $$", {}) == "price $5 and $"


def test_resolve_none_properties() -> None:
    assert resolve_templates(None, {"A": "b"}) is None
    assert resolve_templates({"bucket": "b-${A}"}, {"A": "x"}) == {"bucket": "b-x"}
