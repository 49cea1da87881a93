"""Matching of category names across vocabularies.

A backup may use ``Work`` where the local store has ``work``, ``Job`` or ``工作``.
:func:`find_best_match` tries, in this order, and returns the first hit:

1. exact match after :func:`normalize_name`,
2. containment (case-insensitive substring, both directions),
3. semantic group (both names belong to the same :class:`Concept`),
4. translation (the concept's Chinese term against its English term, both directions).

Everything here is pure. ``existing`` collections are always walked in sorted
order, so results do not depend on set iteration order.
"""

import re
from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from notebackup.model import MatchStrategy

_SEPARATORS_RE = re.compile(r"[\s\-_]+")
#: Minimum similarity ratio for spelling based suggestions.
SIMILARITY_CUTOFF = 0.75


class Concept(str, Enum):
    WORK = "work"
    STUDY = "study"
    LIFE = "life"
    CREATIVE = "creative"
    TECH = "tech"
    HEALTH = "health"
    TRAVEL = "travel"
    FOOD = "food"
    SPORT = "sport"
    MUSIC = "music"
    MOVIE = "movie"
    BOOK = "book"
    GAME = "game"


@dataclass(frozen=True)
class ConceptTerms:
    #: Chinese term, paired with ``english`` for translation matching.
    native: str
    english: str
    #: Near-synonyms used for semantic matching, lower case.
    synonyms: Tuple[str, ...]
    icon: str
    color: str


CONCEPTS: Dict[Concept, ConceptTerms] = {
    Concept.WORK: ConceptTerms(
        "工作", "work", ("work", "job", "career", "business", "office", "task"), "💼", "2196F3"
    ),
    Concept.STUDY: ConceptTerms(
        "学习", "study", ("study", "education", "knowledge", "school", "university", "research"), "📚", "4CAF50"
    ),
    Concept.LIFE: ConceptTerms(
        "生活", "life", ("life", "daily", "living", "personal", "family", "home"), "🌟", "FF9800"
    ),
    Concept.CREATIVE: ConceptTerms(
        "创意", "creative", ("creative", "idea", "innovation", "design", "art", "creation"), "💡", "9C27B0"
    ),
    Concept.TECH: ConceptTerms(
        "技术", "tech", ("tech", "technology", "programming", "coding", "development"), "⚙️", "607D8B"
    ),
    Concept.HEALTH: ConceptTerms(
        "健康", "health", ("health", "fitness", "wellness", "exercise", "medical"), "💪", "4CAF50"
    ),
    Concept.TRAVEL: ConceptTerms(
        "旅行", "travel", ("travel", "trip", "journey", "tour", "vacation", "adventure"), "✈️", "03A9F4"
    ),
    Concept.FOOD: ConceptTerms(
        "美食", "food", ("food", "cooking", "cuisine", "recipe", "restaurant", "dining"), "🍳", "FF5722"
    ),
    Concept.SPORT: ConceptTerms(
        "运动", "sport", ("sport", "exercise", "workout", "fitness", "training"), "🏃", "FF5252"
    ),
    Concept.MUSIC: ConceptTerms(
        "音乐", "music", ("music", "song", "melody", "concert", "musical"), "🎵", "9C27B0"
    ),
    Concept.MOVIE: ConceptTerms(
        "电影", "movie", ("movie", "film", "cinema", "video", "watching"), "🎬", "795548"
    ),
    Concept.BOOK: ConceptTerms(
        "读书", "book", ("book", "reading", "literature", "novel", "study"), "📖", "8BC34A"
    ),
    Concept.GAME: ConceptTerms(
        "游戏", "game", ("game", "gaming", "play", "entertainment", "fun"), "🎮", "673AB7"
    ),
}

#: Names with a fixed style for new categories, checked before the synonym groups.
STYLE_KEYWORDS: Dict[str, Concept] = {
    **{terms.native: concept for concept, terms in CONCEPTS.items()},
    **{terms.english: concept for concept, terms in CONCEPTS.items()},
    "education": Concept.STUDY,
    "daily": Concept.LIFE,
    "idea": Concept.CREATIVE,
    "technology": Concept.TECH,
    "fitness": Concept.HEALTH,
    "trip": Concept.TRAVEL,
    "cooking": Concept.FOOD,
    "exercise": Concept.SPORT,
    "song": Concept.MUSIC,
    "film": Concept.MOVIE,
    "reading": Concept.BOOK,
    "gaming": Concept.GAME,
}


@dataclass(frozen=True)
class CategoryMatch:
    name: str
    strategy: MatchStrategy


def normalize_name(name: str) -> str:
    """Trim, lower-case and drop spaces, hyphens and underscores."""
    return _SEPARATORS_RE.sub("", name.strip().casefold())


def _words(name: str) -> List[str]:
    return [word for word in _SEPARATORS_RE.split(name.strip().casefold()) if word]


def concepts_for(name: str, include_native: bool = False) -> List[Concept]:
    """Concepts a category name belongs to.

    The whole name is tried first, then each of its words, so ``Product Design``
    resolves through ``design``. With ``include_native`` the Chinese terms count
    as members too.
    """

    def lookup(term: str) -> List[Concept]:
        found = []
        for concept, terms in CONCEPTS.items():
            if term in terms.synonyms or (include_native and term == terms.native):
                found.append(concept)
        return found

    whole = name.strip().casefold()
    concepts = lookup(whole)
    if concepts:
        return concepts
    for word in _words(name):
        for concept in lookup(word):
            if concept not in concepts:
                concepts.append(concept)
    return concepts


def find_exact(target: str, candidates: List[str]) -> Optional[str]:
    normalized = normalize_name(target)
    if not normalized:
        return None
    for candidate in candidates:
        if normalize_name(candidate) == normalized:
            return candidate
    return None


def _contains(a: str, b: str) -> bool:
    a, b = a.strip().casefold(), b.strip().casefold()
    if not a or not b:
        return False
    return a in b or b in a


def find_containment(target: str, candidates: List[str]) -> Optional[str]:
    for candidate in candidates:
        if _contains(target, candidate):
            return candidate
    return None


def find_semantic(target: str, candidates: List[str]) -> Optional[str]:
    for concept in concepts_for(target):
        for candidate in candidates:
            if concept in concepts_for(candidate):
                return candidate
    return None


def find_translation(target: str, candidates: List[str]) -> Optional[str]:
    term = target.strip().casefold()
    for terms in CONCEPTS.values():
        if term == terms.native:
            wanted = terms.english
        elif term == terms.english:
            wanted = terms.native
        else:
            continue
        for candidate in candidates:
            if candidate.strip().casefold() == wanted:
                return candidate
    return None


_STRATEGIES = [
    (MatchStrategy.EXACT, find_exact),
    (MatchStrategy.CONTAINMENT, find_containment),
    (MatchStrategy.SEMANTIC, find_semantic),
    (MatchStrategy.TRANSLATION, find_translation),
]


def match_category(target: str, existing: Iterable[str]) -> Optional[CategoryMatch]:
    """Best match for ``target`` among ``existing`` together with the strategy that found it."""
    candidates = sorted(existing)
    for strategy, finder in _STRATEGIES:
        found = finder(target, candidates)
        if found is not None:
            return CategoryMatch(name=found, strategy=strategy)
    return None


def find_best_match(target: str, existing: Iterable[str]) -> Optional[str]:
    match = match_category(target, existing)
    return match.name if match is not None else None


def similar_spellings(target: str, candidates: List[str], cutoff: float = SIMILARITY_CUTOFF) -> List[str]:
    """Candidates whose normalized name is close to the target's, best first."""
    normalized = normalize_name(target)
    scored = []
    for candidate in candidates:
        ratio = SequenceMatcher(None, normalized, normalize_name(candidate)).ratio()
        if ratio >= cutoff:
            scored.append((-ratio, candidate))
    return [candidate for _, candidate in sorted(scored)]


def suggest_alternatives(target: str, existing: Iterable[str], limit: int = 3) -> List[str]:
    """Candidates worth showing to the user for a category that will be created.

    Semantic and translation candidates come first, then every name in a
    containment relation with ``target``, then names that are spelled almost
    the same (typos, plural forms). Suggestions never change the merge plan.
    """
    candidates = sorted(existing)
    suggestions: List[str] = []
    for found in (find_semantic(target, candidates), find_translation(target, candidates)):
        if found is not None and found not in suggestions:
            suggestions.append(found)
    for candidate in candidates:
        if _contains(target, candidate) and candidate not in suggestions:
            suggestions.append(candidate)
    for candidate in similar_spellings(target, candidates):
        if candidate not in suggestions:
            suggestions.append(candidate)
    return suggestions[:limit]


def style_for(name: str, default_icon: str, default_color: str) -> Tuple[str, str]:
    """Icon and color for a new category.

    The whole name and then each word are looked up in :data:`STYLE_KEYWORDS`,
    otherwise the first concept the name belongs to decides.
    """
    concept = None
    for term in [name.strip().casefold()] + _words(name):
        if term in STYLE_KEYWORDS:
            concept = STYLE_KEYWORDS[term]
            break
    if concept is None:
        concepts = concepts_for(name, include_native=True)
        if not concepts:
            return default_icon, default_color
        concept = concepts[0]
    terms = CONCEPTS[concept]
    return terms.icon, terms.color
