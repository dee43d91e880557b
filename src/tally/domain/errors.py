"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or a violated ledger invariant."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as duplicate identifiers."""


class DependencyError(DomainError):
    """Operation blocked due to dependent ledger entries."""


def account_not_found(account_id: str) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: str) -> str:
    """Return message for missing category."""
    return f"Category {category_id} not found"


def family_not_found(family_id: str) -> str:
    """Return message for missing family."""
    return f"Family {family_id} not found"


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def duplicate_id(kind: str, entity_id: str) -> str:
    """Return message for an identifier used twice."""
    return f"Duplicate {kind} id '{entity_id}'"


def delete_blocked(kind: str, entity_id: str, usage_count: int) -> str:
    """Return message when an account or category is still referenced."""
    return (
        f"Cannot delete {kind} {entity_id}: it has {usage_count} "
        f"transaction{'s' if usage_count != 1 else ''}. "
        "Reassign them or archive it instead."
    )
