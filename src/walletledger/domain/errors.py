"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class WalletNotFound(NotFoundError):
    """No wallet exists for the given reference."""


class NothingToSettle(NotFoundError):
    """None of the requested revenue records is pending."""

    settled_count = 0


class EligibilityError(DomainError):
    """Wallet may not perform the requested transaction.

    ``reason`` is a stable machine-readable code.
    """

    reason = "ineligible"


class WalletInactive(EligibilityError):
    reason = "wallet_inactive"


class InsufficientBalance(EligibilityError):
    reason = "insufficient_balance"


class MonthlyLimitReached(EligibilityError):
    reason = "monthly_limit_reached"


class AmountExceedsLimit(EligibilityError):
    reason = "amount_exceeds_limit"


class PersistenceError(RuntimeError):
    """An atomic session failed and was rolled back."""


def wallet_not_found(reference) -> str:
    """Return message for missing wallet."""
    return f"Wallet '{reference}' not found"


def fee_rule_not_found(rule_id: int) -> str:
    """Return message for missing fee rule."""
    return f"Fee rule {rule_id} not found"


def transaction_not_found(transaction_ref: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction '{transaction_ref}' not found"


def ledger_entry_not_found(entry_id: str) -> str:
    """Return message for missing ledger entry."""
    return f"Ledger entry '{entry_id}' not found"


def revenue_not_found(revenue_id: int) -> str:
    """Return message for missing revenue record."""
    return f"Revenue record {revenue_id} not found"


def duplicate_reference(kind: str, reference: str) -> str:
    """Return message for a reference that is already taken."""
    return f"{kind} with reference '{reference}' already exists"


def insufficient_balance(required, available) -> str:
    """Return message when a wallet cannot cover a transaction."""
    return (
        "Insufficient balance to cover the transaction: "
        f"required {required}, available {available}"
    )
