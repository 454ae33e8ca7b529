"""Declarative eval fixtures and their loaders.

A fixture is a JSON document::

    {
        "eval_id": "growth_strategy_smb_001",
        "description": "...",
        "pack": "growth-strategy",
        "seeds": [{"id": "company", "content": "..."}],
        "expected": {"converged": true, "max_cycles": 10},
        "use_mock_llm": true
    }

Every field of ``expected`` is optional; an absent field is not checked.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from converge_app.domain.exceptions import FixtureError

logger = logging.getLogger(__name__)


# -- Models ------------------------------------------------------------------


class SeedFact(BaseModel):
    """A seed fact; its key is always ``Seeds``."""

    id: str
    content: str


class EvalExpectation(BaseModel):
    """Sparse set of independently optional assertions about one run."""

    converged: bool | None = None
    max_cycles: int | None = Field(default=None, ge=0)
    min_facts: int | None = Field(default=None, ge=0)
    must_contain_facts: list[str] = Field(default_factory=list)
    must_not_contain_facts: list[str] = Field(default_factory=list)
    min_strategies: int | None = Field(default=None, ge=0)
    min_evaluations: int | None = Field(default=None, ge=0)
    max_latency_ms: int | None = Field(default=None, ge=0)
    required_context_keys: list[str] = Field(default_factory=list)


class EvalFixture(BaseModel):
    """One eval scenario: seeds for a pack plus expectations about the run."""

    model_config = ConfigDict(extra="ignore")

    eval_id: str
    description: str
    pack: str
    seeds: list[SeedFact]
    expected: EvalExpectation
    use_mock_llm: bool = False


# -- Loaders -----------------------------------------------------------------


def load_fixture(path: str | Path) -> EvalFixture:
    """Read and validate one fixture file.

    Raises
    ------
    FixtureError
        If the file cannot be read or is not a valid fixture document.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FixtureError(f"Failed to read fixture file: {path}", path=str(path)) from exc

    try:
        return EvalFixture.model_validate_json(text)
    except ValidationError as exc:
        raise FixtureError(
            f"Failed to parse fixture JSON: {path}",
            path=str(path),
            details={"errors": exc.error_count()},
        ) from exc


def load_fixtures_from_dir(directory: str | Path) -> list[EvalFixture]:
    """Load every ``*.json`` fixture in *directory*, sorted by ``eval_id``.

    A missing directory yields an empty list.  Files that fail to load are
    logged and skipped.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    fixtures: list[EvalFixture] = []
    for path in sorted(directory.glob("*.json")):
        try:
            fixtures.append(load_fixture(path))
        except FixtureError as exc:
            logger.warning("Failed to load fixture %s: %s (%s)", path, exc, exc.__cause__)

    fixtures.sort(key=lambda fixture: fixture.eval_id)
    return fixtures
