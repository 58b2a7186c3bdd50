"""Controlled skill vocabulary used by the normalizer and fit scorer."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from difflib import SequenceMatcher
from pathlib import Path
from typing import Any

import yaml

# category -> canonical -> aliases
_DEFAULT_VOCABULARY: dict[str, dict[str, list[str]]] = {
    "frontend": {
        "javascript": ["js", "ecmascript", "es6"],
        "typescript": ["ts"],
        "react": ["reactjs", "react.js", "react js"],
        "redux": ["redux toolkit"],
        "next.js": ["nextjs", "next js"],
        "vue.js": ["vue", "vuejs"],
        "angular": ["angularjs", "angular.js"],
        "html": ["html5"],
        "css": ["css3"],
        "jquery": [],
        "tailwind css": ["tailwind", "tailwindcss"],
    },
    "backend": {
        "python": ["python3", "py"],
        "node.js": ["nodejs", "node js", "node"],
        "java": [],
        "go": ["golang"],
        "c#": ["csharp", "c sharp"],
        ".net": ["dotnet", "asp.net"],
        "c++": ["cpp"],
        "ruby": [],
        "ruby on rails": ["rails", "ror"],
        "php": [],
        "django": [],
        "flask": [],
        "fastapi": [],
        "spring boot": ["spring"],
        "graphql": [],
        "rest apis": ["rest", "rest api", "restful apis"],
    },
    "data": {
        "sql": [],
        "postgresql": ["postgres", "psql"],
        "mysql": [],
        "mongodb": ["mongo", "mongo db"],
        "redis": [],
        "numpy": [],
        "pandas": [],
        "machine learning": ["ml"],
        "deep learning": ["dl"],
        "pytorch": ["torch"],
        "tensorflow": ["tf"],
        "data analysis": ["data analytics"],
        "apache spark": ["spark", "pyspark"],
    },
    "devops": {
        "docker": [],
        "kubernetes": ["k8s"],
        "terraform": [],
        "aws": ["amazon web services"],
        "azure": ["microsoft azure"],
        "gcp": ["google cloud", "google cloud platform"],
        "ci/cd": ["continuous integration", "continuous delivery"],
        "linux": [],
        "git": ["github", "gitlab"],
    },
    "mobile": {
        "swift": [],
        "kotlin": [],
        "react native": [],
        "flutter": [],
        "ios development": ["ios"],
        "android development": ["android"],
    },
    "design": {
        "figma": [],
        "ux design": ["ux", "user experience"],
        "ui design": ["ui", "user interface design"],
    },
    "product": {
        "product management": ["product manager"],
        "agile": ["scrum", "kanban"],
        "jira": [],
    },
    "security": {
        "cybersecurity": ["security", "infosec", "information security"],
        "penetration testing": ["pentesting", "pen testing"],
    },
    "finance": {
        "financial modeling": ["financial modelling"],
        "accounting": [],
        "excel": ["microsoft excel", "ms excel"],
    },
}


def normalize_skill(skill: str) -> str:
    """Normalize a skill string for comparison.

    Performs lowercasing, whitespace normalization, and trims common
    surrounding punctuation while preserving meaningful characters
    like "+", "#", and "." (e.g. "C++", "C#", "Node.js").
    """
    value = str(skill).strip().lower()
    value = re.sub(r"\([^)]*\)", "", value)
    value = re.sub(r"\s+", " ", value)
    return value.strip(" ,;")


@dataclass(frozen=True)
class TaxonomyEntry:
    """One canonical skill with its category and known aliases."""

    canonical: str
    category: str | None = None
    aliases: tuple[str, ...] = ()


class SkillTaxonomy:
    """Canonical vocabulary plus alias table.

    Lookups operate on ``normalize_skill`` keys, so they are case-insensitive
    and ignore parenthetical qualifiers.
    """

    def __init__(self, entries: Iterable[TaxonomyEntry]) -> None:
        self._entries: dict[str, TaxonomyEntry] = {}
        self._aliases: dict[str, str] = {}

        for entry in entries:
            key = normalize_skill(entry.canonical)
            if not key:
                raise ValueError("Taxonomy entries need a non-empty canonical name")
            self._entries[key] = TaxonomyEntry(
                canonical=key,
                category=entry.category,
                aliases=tuple(entry.aliases),
            )

        for key, entry in self._entries.items():
            for alias in entry.aliases:
                alias_key = normalize_skill(alias)
                # Canonical names win over aliases; first alias registration wins.
                if alias_key and alias_key not in self._entries:
                    self._aliases.setdefault(alias_key, key)

    @classmethod
    def default(cls) -> SkillTaxonomy:
        """Return the built-in vocabulary."""
        return cls.from_grouped(_DEFAULT_VOCABULARY)

    @classmethod
    def from_grouped(cls, data: Mapping[str, Mapping[str, Iterable[str]]]) -> SkillTaxonomy:
        """Build from ``{category: {canonical: [aliases]}}``."""
        return cls(
            TaxonomyEntry(canonical=canonical, category=category, aliases=tuple(aliases or ()))
            for category, skills in data.items()
            for canonical, aliases in skills.items()
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SkillTaxonomy:
        """Build from ``{canonical: {"category": ..., "aliases": [...]}}``."""
        entries: list[TaxonomyEntry] = []
        for canonical, entry in data.items():
            entry = entry or {}
            if not isinstance(entry, Mapping):
                raise ValueError(
                    f"Taxonomy entry for {canonical!r} must be a mapping with "
                    "'category' and 'aliases'"
                )
            aliases = entry.get("aliases") or []
            if isinstance(aliases, str):
                aliases = [aliases]
            entries.append(
                TaxonomyEntry(
                    canonical=str(canonical),
                    category=entry.get("category"),
                    aliases=tuple(str(a) for a in aliases),
                )
            )
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, skill: object) -> bool:
        return isinstance(skill, str) and normalize_skill(skill) in self._entries

    @property
    def canonical_names(self) -> list[str]:
        return sorted(self._entries)

    def lookup_exact(self, skill: str) -> TaxonomyEntry | None:
        return self._entries.get(normalize_skill(skill))

    def lookup_alias(self, skill: str) -> TaxonomyEntry | None:
        target = self._aliases.get(normalize_skill(skill))
        if target is None:
            return None
        return self._entries[target]

    def resolve(self, skill: str) -> TaxonomyEntry | None:
        """Local exact-then-alias lookup."""
        return self.lookup_exact(skill) or self.lookup_alias(skill)

    def canonical_for(self, skill: str) -> str:
        """Return the canonical name, or the normalized string when unknown."""
        entry = self.resolve(skill)
        if entry is not None:
            return entry.canonical
        return normalize_skill(skill)

    def closest(self, skill: str, threshold: float) -> tuple[TaxonomyEntry, float] | None:
        """Return the most similar entry whose ratio is at least ``threshold``.

        Both canonical names and aliases are compared; an alias hit resolves
        to its canonical entry.
        """
        key = normalize_skill(skill)
        if not key:
            return None

        best_key: str | None = None
        best_ratio = 0.0
        candidates = [(name, name) for name in self._entries]
        candidates.extend(self._aliases.items())
        for candidate, target in candidates:
            ratio = SequenceMatcher(None, key, candidate).ratio()
            if ratio > best_ratio:
                best_key, best_ratio = target, ratio

        if best_key is None or best_ratio < threshold:
            return None
        return self._entries[best_key], best_ratio


def load_taxonomy(path: Path | str) -> SkillTaxonomy:
    """Load a taxonomy file (YAML or JSON) mapping canonical -> {category, aliases}."""
    taxonomy_path = Path(path)
    if not taxonomy_path.exists():
        raise FileNotFoundError(f"Taxonomy not found: {taxonomy_path}")

    raw = taxonomy_path.read_text(encoding="utf-8")
    if taxonomy_path.suffix.lower() == ".json":
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON taxonomy: {taxonomy_path}") from e
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML taxonomy: {taxonomy_path}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Taxonomy must be a mapping/dict: {taxonomy_path}")
    return SkillTaxonomy.from_mapping(data)
