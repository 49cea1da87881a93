"""Build the merge plan that reconciles backup categories with local ones."""

import logging
from typing import Dict, Iterable, List, Optional

from notebackup.config import Configuration
from notebackup.matching import match_category, style_for, suggest_alternatives
from notebackup.model import BackupDocument, CategoryRecord, MatchDecision, MatchStrategy, MergePlan
from notebackup.validation.rules import check_category_name

log = logging.getLogger(__name__)


def required_names(doc: BackupDocument) -> List[str]:
    """Every category name the document refers to: declared ones first, then the ones used by notes."""
    names: Dict[str, None] = {}
    for category in doc.categories:
        names.setdefault(category.name, None)
    for note in doc.entries:
        names.setdefault(note.category_name, None)
    return list(names)


def new_category(name: str, declared: Optional[CategoryRecord], config: Configuration) -> CategoryRecord:
    """Category to create for ``name``.

    A category declared in the backup keeps its own icon and color, one that is
    only referenced by notes gets the style of the concept its name belongs to.
    """
    if declared is not None:
        return declared.model_copy(update={"note_count": 0})
    icon, color = style_for(name, config.default_icon, config.default_color)
    return CategoryRecord(name=name, icon=icon, color=color.upper())


def build_plan(doc: BackupDocument, existing: Iterable[str], config: Optional[Configuration] = None) -> MergePlan:
    """Resolve every category the document needs against ``existing``.

    Names present verbatim map to themselves. Otherwise the name matcher is
    consulted, and if it finds nothing the category is scheduled for creation
    under its backup name. A name without a match that is not a valid category
    name (too long) is rejected instead, its notes fail later. The result only
    depends on the arguments.
    """
    config = config or Configuration()
    existing_names = sorted(set(existing))
    existing_set = set(existing_names)
    declared = {category.name: category for category in doc.categories}

    mapping: Dict[str, str] = {}
    to_create: List[CategoryRecord] = []
    unresolvable: List[str] = []
    rejected: Dict[str, str] = {}
    decisions: List[MatchDecision] = []
    suggestions: Dict[str, List[str]] = {}

    for name in required_names(doc):
        if not name.strip():
            # Validation never lets blank names through.
            log.error(f"Category name {name!r} can neither be matched nor created")
            unresolvable.append(name)
            continue
        if name in existing_set:
            mapping[name] = name
            decisions.append(MatchDecision(source=name, target=name, strategy=MatchStrategy.IDENTITY))
            continue
        match = match_category(name, existing_names)
        if match is not None:
            log.info(f"Smart match ({match.strategy.value}): '{name}' -> '{match.name}'")
            mapping[name] = match.name
            decisions.append(MatchDecision(source=name, target=match.name, strategy=match.strategy))
            continue
        rule = check_category_name(name, config.max_category_name_length)
        if not rule.ok:
            log.warning(f"Category '{name}' cannot be created: {rule.reason}")
            rejected[name] = rule.reason
            decisions.append(MatchDecision(source=name, target=name, strategy=MatchStrategy.REJECTED))
            continue
        mapping[name] = name
        to_create.append(new_category(name, declared.get(name), config))
        decisions.append(MatchDecision(source=name, target=name, strategy=MatchStrategy.CREATE))
        alternatives = suggest_alternatives(name, existing_names, limit=config.max_suggestions)
        if alternatives:
            suggestions[name] = alternatives
            log.info(f"Category '{name}' will be created, similar existing categories: {', '.join(alternatives)}")
        else:
            log.info(f"Category '{name}' will be created")

    log.info(
        f"Merge plan: {len(mapping)} categories, {len(to_create)} to create, "
        f"{sum(1 for s, t in mapping.items() if s != t)} smart matches"
    )
    return MergePlan(
        name_mapping=mapping,
        categories_to_create=to_create,
        unresolvable=unresolvable,
        rejected=rejected,
        decisions=decisions,
        suggestions=suggestions,
    )


def build_identity_plan(doc: BackupDocument, config: Optional[Configuration] = None) -> MergePlan:
    """Plan for an empty store: keep every name and create every category that is a valid name."""
    config = config or Configuration()
    declared = {category.name: category for category in doc.categories}
    mapping: Dict[str, str] = {}
    to_create: List[CategoryRecord] = []
    rejected: Dict[str, str] = {}
    decisions: List[MatchDecision] = []
    for name in required_names(doc):
        rule = check_category_name(name, config.max_category_name_length)
        if not rule.ok:
            log.warning(f"Category '{name}' cannot be created: {rule.reason}")
            rejected[name] = rule.reason
            decisions.append(MatchDecision(source=name, target=name, strategy=MatchStrategy.REJECTED))
            continue
        mapping[name] = name
        to_create.append(new_category(name, declared.get(name), config))
        decisions.append(MatchDecision(source=name, target=name, strategy=MatchStrategy.CREATE))
    return MergePlan(name_mapping=mapping, categories_to_create=to_create, rejected=rejected, decisions=decisions)
