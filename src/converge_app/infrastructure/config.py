"""Configuration dataclasses for the converge application.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations, plus ``to_dict()`` / ``from_dict()``
helpers.  This is wiring configuration (which packs are enabled, which
providers are preferred, engine budgets), not business semantics.

Configs are **frozen** (``frozen=True``) so a single instance can be
shared between concurrent eval runs without risking silent mutation.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any


# ===================================================================== #
#  Provider Configuration                                                #
# ===================================================================== #

_KNOWN_PROVIDERS = frozenset({"anthropic", "openai", "mock"})


@dataclass(frozen=True)
class ProviderOverride:
    """Per-provider override of the factory defaults.

    Attributes
    ----------
    model:
        Model identifier replacing the provider's default.
    rate_limit:
        Requests per minute allowed through the shared provider instance.
    timeout_ms:
        Request timeout in milliseconds.
    """

    model: str | None = None
    rate_limit: int | None = None
    timeout_ms: int | None = None

    def validate(self) -> None:
        if self.model is not None and not self.model:
            raise ValueError("model override must not be empty")
        if self.rate_limit is not None and self.rate_limit < 1:
            raise ValueError(f"rate_limit must be >= 1, got {self.rate_limit}")
        if self.timeout_ms is not None and self.timeout_ms < 1:
            raise ValueError(f"timeout_ms must be >= 1, got {self.timeout_ms}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderOverride:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


@dataclass(frozen=True)
class ProviderConfig:
    """Which live providers to try, and in what order.

    Attributes
    ----------
    prefer:
        Provider names tried in order when building a live provider.
    exclude:
        Provider names never used, even if their API key is set.
    overrides:
        Per-provider :class:`ProviderOverride` keyed by provider name.
    """

    prefer: tuple[str, ...] = ("anthropic", "openai")
    exclude: tuple[str, ...] = ()
    overrides: dict[str, ProviderOverride] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # JSON gives lists; store tuples.
        object.__setattr__(self, "prefer", tuple(self.prefer))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        if self.overrides is None:
            object.__setattr__(self, "overrides", {})

    def validate(self) -> None:
        unknown = (set(self.prefer) | set(self.exclude)) - _KNOWN_PROVIDERS
        if unknown:
            raise ValueError(
                f"unknown providers {sorted(unknown)}; "
                f"valid providers: {sorted(_KNOWN_PROVIDERS)}"
            )
        for override in self.overrides.values():
            override.validate()

    def override_for(self, provider: str) -> ProviderOverride:
        return self.overrides.get(provider, ProviderOverride())

    def to_dict(self) -> dict[str, Any]:
        return {
            "prefer": list(self.prefer),
            "exclude": list(self.exclude),
            "overrides": {k: v.to_dict() for k, v in self.overrides.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProviderConfig:
        overrides = {
            name: ProviderOverride.from_dict(raw)
            for name, raw in (data.get("overrides") or {}).items()
        }
        cfg = cls(
            prefer=tuple(data.get("prefer", cls.prefer)),
            exclude=tuple(data.get("exclude", ())),
            overrides=overrides,
        )
        cfg.validate()
        return cfg


# ===================================================================== #
#  Engine Configuration                                                  #
# ===================================================================== #

@dataclass(frozen=True)
class EngineConfig:
    """Budgets for the convergence engine.

    Attributes
    ----------
    max_cycles:
        Hard upper limit on cycles before the run stops unconverged.
    parallel:
        If ``True``, eligible agents of a cycle execute on a thread pool.
    max_workers:
        Thread-pool size when ``parallel`` is set; ``None`` lets the
        executor decide.
    """

    max_cycles: int = 50
    parallel: bool = False
    max_workers: int | None = None

    def validate(self) -> None:
        if self.max_cycles < 1:
            raise ValueError(f"max_cycles must be >= 1, got {self.max_cycles}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Application Configuration                                             #
# ===================================================================== #

@dataclass(frozen=True)
class AppConfig:
    """Top-level deployment configuration.

    Attributes
    ----------
    enabled_packs:
        Pack names offered by this distribution.
    providers:
        Live provider selection.
    engine:
        Engine budgets.
    """

    enabled_packs: tuple[str, ...] = ("growth-strategy",)
    providers: ProviderConfig = field(default_factory=ProviderConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled_packs", tuple(self.enabled_packs))

    def validate(self) -> None:
        if not self.enabled_packs:
            raise ValueError("enabled_packs must not be empty")
        self.providers.validate()
        self.engine.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled_packs": list(self.enabled_packs),
            "providers": self.providers.to_dict(),
            "engine": self.engine.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        cfg = cls(
            enabled_packs=tuple(data.get("enabled_packs", cls.enabled_packs)),
            providers=ProviderConfig.from_dict(data.get("providers") or {}),
            engine=EngineConfig.from_dict(data.get("engine") or {}),
        )
        cfg.validate()
        return cfg


# ===================================================================== #
#  Loaders                                                               #
# ===================================================================== #

def load_config_from_json(json_str: str) -> AppConfig:
    """Parse a JSON document into a validated :class:`AppConfig`.

    Unknown top-level keys are ignored; missing sections take defaults.
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    return AppConfig.from_dict(raw)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from *path*, or return defaults when ``None``."""
    if path is None:
        return AppConfig()
    text = Path(path).read_text(encoding="utf-8")
    return load_config_from_json(text)
