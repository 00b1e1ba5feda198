"""Per-request resolution of the shared webhook secret."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, runtime_checkable

from pydantic import SecretStr

from sanity_webhook.errors import NoSecretError

LOGGER = logging.getLogger(__name__)

DEFAULT_SECRET_ENV = "SANITY_WEBHOOK_SECRET"
MAX_RESOLVE_DEPTH = 8


@runtime_checkable
class SecretProvider(Protocol):
    """Lazily yields the HMAC key for the current request."""

    def resolve(self) -> Any:
        ...


@dataclass(frozen=True)
class LiteralSecret:
    """A fixed secret supplied at configuration time."""

    value: SecretStr

    def resolve(self) -> SecretStr:
        return self.value


@dataclass(frozen=True)
class EnvironmentSecret:
    """Reads the secret from the process environment on every resolution."""

    name: str = DEFAULT_SECRET_ENV

    def resolve(self) -> str | None:
        return os.environ.get(self.name)


@dataclass(frozen=True)
class CallableSecret:
    """Defers to a user callback evaluated at request time."""

    func: Callable[[], Any] = field(repr=False)

    def resolve(self) -> Any:
        return self.func()


SecretSpec: TypeAlias = str | SecretStr | SecretProvider | Callable[[], Any] | None


def as_provider(spec: SecretSpec) -> SecretProvider:
    """Wrap a configured secret spec in the matching provider."""
    if spec is None:
        return EnvironmentSecret()
    if isinstance(spec, str):
        return LiteralSecret(SecretStr(spec))
    if isinstance(spec, SecretStr):
        return LiteralSecret(spec)
    if isinstance(spec, SecretProvider):
        return spec
    if callable(spec):
        return CallableSecret(spec)
    raise TypeError(f"Unsupported secret spec: {type(spec).__name__}")


def resolve_secret(spec: SecretSpec) -> str:
    """Resolve a secret spec down to a plain non-empty string.

    Providers and callables may hand back further providers or callables;
    those are followed up to MAX_RESOLVE_DEPTH levels. Any failure raised
    by user secret code is reported as NoSecretError.
    """
    value: Any = as_provider(spec)
    for _ in range(MAX_RESOLVE_DEPTH):
        if not (isinstance(value, SecretProvider) or callable(value)):
            break
        try:
            value = value.resolve() if isinstance(value, SecretProvider) else value()
        except NoSecretError:
            raise
        except Exception as exc:
            LOGGER.warning(
                "secret provider failed",
                extra={"event": "secret_resolution_failed", "context": {"error_type": type(exc).__name__}},
                exc_info=True,
            )
            raise NoSecretError() from exc
    if isinstance(value, SecretStr):
        value = value.get_secret_value()
    if not isinstance(value, str) or not value:
        raise NoSecretError()
    return value
