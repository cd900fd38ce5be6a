"""Read-only challenge catalog loaded from YAML."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import cast

import yaml
from pydantic import ValidationError

from grading.errors import GradingError
from grading.schemas import Challenge

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("challenges.yaml")


class ChallengeNotFound(GradingError):
    """Raised when a slug is not in the catalog."""

    def __init__(self, slug: str) -> None:
        super().__init__(f"Challenge not found: {slug}")
        self.slug = slug


class ChallengeCatalog(Mapping[str, Challenge]):
    """Immutable slug -> Challenge mapping."""

    def __init__(self, challenges: Iterable[Challenge]) -> None:
        entries: dict[str, Challenge] = {}
        for challenge in challenges:
            if challenge.slug in entries:
                raise ValueError(f"Duplicate challenge slug: {challenge.slug}")
            entries[challenge.slug] = challenge
        self._entries = entries

    def __getitem__(self, slug: str) -> Challenge:
        return self._entries[slug.strip().lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get_challenge(self, slug: str) -> Challenge:
        try:
            return self[slug]
        except KeyError:
            raise ChallengeNotFound(slug) from None

    def filter(
        self,
        language: str | None = None,
        difficulty: str | None = None,
        tag: str | None = None,
    ) -> list[Challenge]:
        selected: list[Challenge] = []
        for challenge in self._entries.values():
            if language and challenge.language != language.lower():
                continue
            if difficulty and challenge.difficulty.lower() != difficulty.lower():
                continue
            if tag and tag not in challenge.tags:
                continue
            selected.append(challenge)
        return selected

    def languages(self) -> list[str]:
        return sorted({challenge.language for challenge in self._entries.values()})


def load_catalog(yaml_path: str | Path | None = None) -> ChallengeCatalog:
    """Load a challenge catalog from YAML.

    Args:
        yaml_path: Catalog file; the packaged catalog when omitted

    Returns:
        ChallengeCatalog instance

    Raises:
        FileNotFoundError: If the YAML file doesn't exist
        ValueError: If the YAML is invalid or an entry fails validation
    """
    yaml_path = Path(yaml_path) if yaml_path is not None else DEFAULT_CATALOG_PATH

    if not yaml_path.exists():
        raise FileNotFoundError(f"Catalog file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if isinstance(data, Mapping):
        data = cast(Mapping[str, object], data).get("challenges")
    if not isinstance(data, list):
        raise ValueError(f"Catalog must be a list of challenges: {yaml_path}")

    challenges: list[Challenge] = []
    for position, entry in enumerate(cast(list[object], data)):
        if not isinstance(entry, Mapping):
            raise ValueError(f"Catalog entry {position} is not a mapping in {yaml_path}")
        try:
            challenges.append(Challenge.from_dict(cast(Mapping[str, object], entry)))
        except ValidationError as e:
            raise ValueError(f"Invalid challenge at position {position} in {yaml_path}: {e}") from e

    catalog = ChallengeCatalog(challenges)
    logger.debug(f"Loaded {len(catalog)} challenge(s) from {yaml_path}")
    return catalog
