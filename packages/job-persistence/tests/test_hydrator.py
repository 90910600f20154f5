"""Tests for secret reference hydration."""

from __future__ import annotations

import pytest
from relay_job_persistence.hydrator import EnvSecretsHydrator


def test_replaces_nested_references():
    hydrator = EnvSecretsHydrator({"PG_PASSWORD": "hunter2", "API_KEY": "k-123"})
    config = {
        "host": "db",
        "password": {"_secret_env": "PG_PASSWORD"},
        "tunnels": [{"key": {"_secret_env": "API_KEY"}, "port": 22}],
    }
    assert hydrator.hydrate(config) == {
        "host": "db",
        "password": "hunter2",
        "tunnels": [{"key": "k-123", "port": 22}],
    }


def test_does_not_mutate_input():
    config = {"password": {"_secret_env": "PG_PASSWORD"}}
    EnvSecretsHydrator({"PG_PASSWORD": "x"}).hydrate(config)
    assert config == {"password": {"_secret_env": "PG_PASSWORD"}}


def test_dict_with_extra_keys_is_not_a_reference():
    config = {"password": {"_secret_env": "PG_PASSWORD", "note": "literal"}}
    assert EnvSecretsHydrator({}).hydrate(config) == config


def test_missing_variable_raises():
    with pytest.raises(ValueError, match="PG_PASSWORD"):
        EnvSecretsHydrator({}).hydrate({"password": {"_secret_env": "PG_PASSWORD"}})
