"""
Category Rule Lookup

Suggests a category for a statement line from the user's keyword rules.
Rules are read once per user and kept in a RulesCache owned by the
application; adding or deleting a rule invalidates the cached entry.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ledger.models import Category, CategoryRule

from .classifiers import suggest_category_for_statement


logger = logging.getLogger(__name__)


GLOBAL_CACHE_KEY = "_global"
DEFAULT_CATEGORY_NAME = "Outros"


@dataclass(frozen=True)
class SuggestedCategory:
    id: str
    name: str
    color: str | None = None
    icon: str | None = None


@dataclass(frozen=True)
class RuleEntry:
    """Immutable snapshot of a keyword rule with its category."""

    id: str
    keyword: str
    category: SuggestedCategory


class RulesCache:
    """Per-user cache of keyword rules.

    Entries are replaced or removed as a whole and never mutated in place,
    so readers always see a complete rule list.
    """

    def __init__(self):
        self._entries: dict[str, tuple[RuleEntry, ...]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[RuleEntry, ...] | None:
        return self._entries.get(key)

    def put(self, key: str, rules) -> None:
        with self._lock:
            self._entries[key] = tuple(rules)

    def invalidate(self, key: str | None = None) -> None:
        """Drop one user's entry, or every entry when no key is given."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


def _snapshot(rule: CategoryRule) -> RuleEntry:
    category = rule.category
    return RuleEntry(
        id=rule.id,
        keyword=rule.keyword,
        category=SuggestedCategory(
            id=category.id,
            name=category.name,
            color=category.color,
            icon=category.icon,
        ),
    )


class CategoryRuleLookup:
    """Keyword rule matching backed by the database and a RulesCache."""

    def __init__(
        self,
        session: Session,
        cache: RulesCache | None = None,
        config_dir: Path | str | None = None
    ):
        """Initialize lookup.

        Args:
            session: Database session
            cache: Shared rules cache; a private one is created if omitted
            config_dir: Path to configuration directory
        """
        self.session = session
        self.cache = cache if cache is not None else RulesCache()
        self.config_dir = Path(config_dir) if config_dir else Path(__file__).parent.parent.parent / "config"

    def get_rules(self, user_id: str | None = None) -> tuple[RuleEntry, ...]:
        """Rules for a user in match order, read through the cache."""
        key = user_id or GLOBAL_CACHE_KEY
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        query = self.session.query(CategoryRule)
        if user_id:
            query = query.filter(CategoryRule.user_id == user_id)
        rules = query.order_by(CategoryRule.position, CategoryRule.created_at, CategoryRule.id).all()

        entries = tuple(_snapshot(rule) for rule in rules)
        self.cache.put(key, entries)
        logger.debug(f"Loaded {len(entries)} category rules for {key}")
        return entries

    def suggest_category(self, description: str, user_id: str | None = None) -> SuggestedCategory | None:
        """First rule whose keyword appears in the description wins."""
        upper_desc = description.upper()
        for rule in self.get_rules(user_id):
            if rule.keyword.upper() in upper_desc:
                return rule.category
        return None

    def __call__(self, description: str, user_id: str | None = None) -> SuggestedCategory | None:
        return self.suggest_category(description, user_id)

    def _invalidate(self, user_id: str | None) -> None:
        if user_id:
            self.cache.invalidate(user_id)
        self.cache.invalidate(GLOBAL_CACHE_KEY)

    def list_rules(self, user_id: str | None = None) -> list[CategoryRule]:
        query = self.session.query(CategoryRule)
        if user_id:
            query = query.filter(CategoryRule.user_id == user_id)
        return query.order_by(CategoryRule.keyword).all()

    def add_rule(self, keyword: str, category_id: str, user_id: str | None = None) -> CategoryRule:
        """Create a keyword rule; keywords are stored upper-cased."""
        last_position = self.session.query(func.max(CategoryRule.position)).scalar()
        rule = CategoryRule(
            keyword=keyword.upper(),
            category_id=category_id,
            user_id=user_id,
            position=(last_position or 0) + 1,
        )
        self.session.add(rule)
        self.session.commit()
        self.session.refresh(rule)
        self._invalidate(user_id)
        logger.info(f"Added category rule {rule.keyword} -> {category_id}")
        return rule

    def delete_rule(self, rule_id: str, user_id: str | None = None) -> bool:
        """Delete a rule.

        Returns:
            False if no such rule exists for the user
        """
        query = self.session.query(CategoryRule).filter(CategoryRule.id == rule_id)
        if user_id:
            query = query.filter(CategoryRule.user_id == user_id)
        rule = query.first()
        if rule is None:
            return False

        self.session.delete(rule)
        self.session.commit()
        self._invalidate(user_id)
        return True

    def get_category(self, category_id: str, user_id: str | None = None) -> Category | None:
        """Category by id, visible to the user (own or shared)."""
        query = self.session.query(Category).filter(Category.id == category_id)
        if user_id:
            query = query.filter(or_(Category.user_id == user_id, Category.user_id.is_(None)))
        return query.first()

    def find_category_by_name(self, name: str, user_id: str | None = None) -> Category | None:
        query = self.session.query(Category).filter(Category.name == name)
        if user_id:
            query = query.filter(Category.user_id == user_id)
        return query.first()

    def suggest_for_statement_line(
        self,
        description: str,
        transaction_kind: str | None,
        user_id: str | None = None
    ) -> Any:
        """Category for an OCR line: keyword rules first, then the
        transaction kind, then the default category."""
        category = self.suggest_category(description, user_id)
        if category is not None:
            return category

        fallback_name = suggest_category_for_statement(transaction_kind) or DEFAULT_CATEGORY_NAME
        return self.find_category_by_name(fallback_name, user_id)

    def _load_defaults(self) -> dict:
        defaults_file = self.config_dir / "category_rules.yaml"
        if defaults_file.exists():
            with open(defaults_file) as f:
                return yaml.safe_load(f) or {}
        logger.warning(f"Default category rules not found at {defaults_file}")
        return {}

    def initialize_user_defaults(self, user_id: str) -> int:
        """Install default categories and keyword rules for a new user.

        Does nothing if the user already has categories.

        Returns:
            Number of rules created
        """
        existing = self.session.query(Category).filter(Category.user_id == user_id).count()
        if existing > 0:
            return 0

        defaults = self._load_defaults()

        category_ids = {}
        for item in defaults.get("categories", []):
            category = Category(
                name=item["name"],
                color=item.get("color"),
                icon=item.get("icon"),
                user_id=user_id,
            )
            self.session.add(category)
            self.session.flush()
            category_ids[category.name] = category.id

        created = 0
        for item in defaults.get("rules", []):
            category_id = category_ids.get(item["category"])
            if category_id is None:
                continue
            self.session.add(CategoryRule(
                keyword=str(item["keyword"]).upper(),
                category_id=category_id,
                user_id=user_id,
                position=created,
            ))
            created += 1

        self.session.commit()
        self._invalidate(user_id)
        logger.info(f"Initialized {len(category_ids)} categories and {created} rules for {user_id}")
        return created
