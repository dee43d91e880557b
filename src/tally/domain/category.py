"""Family and category domain service."""

from typing import TYPE_CHECKING, Optional

from tally.domain.entities import Category, Family, Nature
from tally.domain.errors import (
    ConflictError,
    NotFoundError,
    category_not_found,
    family_not_found,
)
from tally.domain.reference import category_usage_count, ensure_category_deletable

if TYPE_CHECKING:
    from tally.database.base import Database


class CategoryService:
    """Service for managing families and their categories."""

    def __init__(self, db: "Database"):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_family(self, name: str, nature: Nature) -> str:
        """Create a family.

        Raises:
            ConflictError: If a family with that name already exists
        """
        if self.get_family_by_name(name) is not None:
            raise ConflictError(f"Family '{name}' already exists")
        return self.db.create_family(name=name, nature=Nature(nature))

    def create_category(self, name: str, family_id: str) -> str:
        """Create a category under a family.

        Raises:
            NotFoundError: If the family doesn't exist
            ConflictError: If the family already has a category with that name
        """
        if self.db.get_family(family_id) is None:
            raise NotFoundError(family_not_found(family_id))
        for cat in self.db.list_categories(family_id=family_id):
            if cat.name.casefold() == name.casefold():
                raise ConflictError(f"Category '{name}' already exists in family {family_id}")
        return self.db.create_category(name=name, family_id=family_id)

    def get_family_by_name(self, name: str) -> Optional[Family]:
        for family in self.db.list_families():
            if family.name.casefold() == name.casefold():
                return family
        return None

    def list_families(self) -> list[Family]:
        return self.db.list_families()

    def list_categories(self, family_id: Optional[str] = None) -> list[Category]:
        return self.db.list_categories(family_id=family_id)

    def get_family_tree(self) -> list[tuple[Family, list[Category]]]:
        """Return each family with its categories, in creation order."""
        categories = self.db.list_categories()
        return [
            (family, [cat for cat in categories if cat.family_id == family.id])
            for family in self.db.list_families()
        ]

    def set_active(self, category_id: str, active: bool) -> None:
        """Archive or restore a category."""
        self.require_category(category_id)
        self.db.update_category(category_id, active=active)

    def usage_count(self, category_id: str) -> int:
        """Count transactions assigned to the category."""
        self.require_category(category_id)
        return category_usage_count(self.db.list_transactions(), category_id)

    def delete_category(self, category_id: str) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If category not found
            DependencyError: If transactions still use the category
        """
        self.require_category(category_id)
        ensure_category_deletable(self.db.list_transactions(), category_id)
        self.db.delete_category(category_id)

    def require_category(self, category_id: str) -> Category:
        category = self.db.get_category(category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category
