"""Shared lookups for the transaction use cases."""

from __future__ import annotations

from till.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    InvalidStateError,
)
from till.domain.model.transaction import Transaction
from till.domain.repository.transaction_repository import TransactionRepository


def load_transaction(repo: TransactionRepository, transaction_id: str) -> Transaction:
    transaction = repo.get_by_id(transaction_id)
    if transaction is None:
        raise EntityNotFoundError(f"Transaction {transaction_id} not found")
    return transaction


def conflict(
    repo: TransactionRepository,
    transaction_id: str,
    fallback: DomainException,
) -> DomainException:
    """Explain why a conditional write affected no row.

    Another request got there first: the transaction vanished or left
    the open state. If it is still open, *fallback* describes what
    else the write depended on.
    """
    current = repo.get_by_id(transaction_id)
    if current is None:
        return EntityNotFoundError(f"Transaction {transaction_id} not found")
    if not current.is_open:
        return InvalidStateError(
            f"Transaction {transaction_id} is {current.status.value}, expected open"
        )
    return fallback
