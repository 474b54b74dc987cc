"""
Semantic classification of transactions.

Every transaction lands in exactly one bucket: salary, benefit, variable
income, fixed expense, variable expense or investment. Whether an expense is
fixed depends on it being a known subscription or on its recurrence, which
is decided from the transactions seen in the trailing three months.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, fields
from typing import Dict, Iterable, List

from categories import TransactionCategory, TransactionType
from schemas import TransactionRecord

# Meal/food/transport vouchers and similar employer benefits (pt-BR)
BENEFIT_PATTERN = re.compile(
    r"\b(va|vr|vt|vales?|benef[ií]cios?|aux[ií]lios?|ticket|alelo|sodexo|pluxee)\b",
    re.IGNORECASE,
)

# Two or more earlier look-alikes make a transaction recurring
RECURRENCE_MIN_MATCHES = 2
AMOUNT_TOLERANCE = 0.2


@dataclass(frozen=True)
class Classification:
    is_salary: bool = False
    is_benefit: bool = False
    is_variable_income: bool = False
    is_fixed_expense: bool = False
    is_variable_expense: bool = False
    is_investment: bool = False

    @property
    def bucket(self) -> str:
        for f in fields(self):
            if getattr(self, f.name):
                return f.name[3:]
        raise ValueError("classification has no bucket")


def is_benefit_name(name: str) -> bool:
    return bool(BENEFIT_PATTERN.search(name or ""))


def classify_transaction(
    type_,
    category,
    name: str,
    is_recurring: bool = False,
    is_subscription: bool = False,
) -> Classification:
    """Return the single bucket of a transaction (first matching rule wins)."""
    type_ = TransactionType(type_)
    category = TransactionCategory(category)

    if type_ == TransactionType.DEPOSIT:
        if category == TransactionCategory.SALARY:
            return Classification(is_salary=True)
        if is_benefit_name(name):
            return Classification(is_benefit=True)
        return Classification(is_variable_income=True)

    if type_ == TransactionType.EXPENSE:
        if is_subscription or is_recurring:
            return Classification(is_fixed_expense=True)
        return Classification(is_variable_expense=True)

    return Classification(is_investment=True)


def _tokens(name: str) -> set:
    return set((name or "").lower().split())


def _is_similar(candidate: TransactionRecord, other: TransactionRecord) -> bool:
    if other.category != candidate.category:
        return False
    if other.name.lower() == candidate.name.lower():
        return True

    amount_ratio = abs(other.amount - candidate.amount) / max(candidate.amount, 1)
    if amount_ratio < AMOUNT_TOLERANCE:
        return bool(_tokens(candidate.name) & _tokens(other.name))
    return False


class RecurrenceIndex:
    """
    Transactions of the trailing window grouped by category.

    Both similarity rules require the same category, so a candidate is only
    compared with its own category bucket.
    """

    def __init__(self, history: Iterable[TransactionRecord]):
        self._by_category: Dict[TransactionCategory, List[TransactionRecord]] = defaultdict(list)
        for txn in history:
            self._by_category[txn.category].append(txn)

    def similar_before(self, candidate: TransactionRecord) -> List[TransactionRecord]:
        """Earlier look-alikes of ``candidate``; never itself, never later or same-time rows."""
        when = candidate.effective_date
        return [
            other
            for other in self._by_category.get(candidate.category, [])
            if other.id != candidate.id and other.effective_date < when and _is_similar(candidate, other)
        ]

    def is_recurring(self, candidate: TransactionRecord) -> bool:
        return len(self.similar_before(candidate)) >= RECURRENCE_MIN_MATCHES


def is_recurring(transaction: TransactionRecord, history: Iterable[TransactionRecord]) -> bool:
    return RecurrenceIndex(history).is_recurring(transaction)
