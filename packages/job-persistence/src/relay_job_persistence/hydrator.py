"""Resolves secret references in connector configurations.

Connection configs never store credentials directly. Wherever a secret
belongs, the config holds a reference object naming an environment variable:

    {"host": "db", "password": {"_secret_env": "WAREHOUSE_PASSWORD"}}

Hydration replaces each reference with the variable's value, recursively.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

SECRET_ENV_KEY = "_secret_env"


class EnvSecretsHydrator:
    """SecretsHydrator backed by the worker's environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ = environ if environ is not None else os.environ

    def hydrate(self, partial_config: dict[str, Any]) -> dict[str, Any]:
        return self._hydrate(partial_config)

    def _hydrate(self, value: Any) -> Any:
        if isinstance(value, dict):
            if set(value) == {SECRET_ENV_KEY}:
                return self._resolve(value[SECRET_ENV_KEY])
            return {k: self._hydrate(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._hydrate(v) for v in value]
        return value

    def _resolve(self, env_var: str) -> str:
        secret = self.environ.get(env_var, "")
        if not secret:
            raise ValueError(f"Environment variable '{env_var}' is not set or empty")
        return secret
