"""Typed records exchanged between the data-access layer, the summary
engine and the HTTP layer.

Input records are built from ORM rows in ``queries.py``; the engine never
sees SQLAlchemy objects. The loosely typed JSON columns of a financial
profile (``multiple_payments`` and ``beneficios``) are validated here, so the
aggregation code can rely on their shape.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from categories import PaymentMethod, TransactionCategory, TransactionType

logger = logging.getLogger(__name__)


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


# --- Engine inputs ---

class TransactionRecord(Record):
    id: int
    user_id: int
    created_by_id: Optional[int] = None
    name: str
    type: TransactionType
    category: TransactionCategory
    amount: float
    payment_method: PaymentMethod = PaymentMethod.OTHER
    date: Optional[datetime] = None
    created_at: datetime
    installments: Optional[int] = None

    @property
    def effective_date(self) -> datetime:
        return self.date or self.created_at


class SubscriptionRecord(Record):
    id: int
    user_id: int
    name: str
    amount: float
    due_date: datetime
    next_due_date: Optional[datetime] = None
    recurring: bool = True
    active: bool = True
    logo_url: Optional[str] = None

    @property
    def effective_due_date(self) -> datetime:
        return self.next_due_date or self.due_date


class PlannedPayment(Record):
    label: str = Field(min_length=1)
    day: int = Field(ge=1, le=31)
    value: float = Field(ge=0)

    @property
    def is_salary(self) -> bool:
        label = self.label.lower()
        return "salário" in label or "salario" in label


class Benefit(Record):
    type: Literal["VA", "VR", "VT", "OUTRO"]
    value: float = Field(ge=0)
    notes: Optional[str] = None
    category: Optional[str] = None


class ProfileRecord(Record):
    user_id: int
    renda_fixa: float = 0.0
    renda_variavel_media: float = 0.0
    dia_pagamento: Optional[int] = Field(default=None, ge=1, le=31)
    multiple_payments: Optional[List[PlannedPayment]] = None
    beneficios: List[Benefit] = Field(default_factory=list)


class UserRef(Record):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Usuário"


_PAYMENTS = TypeAdapter(List[PlannedPayment])
_BENEFIT = TypeAdapter(Benefit)


def parse_multiple_payments(raw: Any, user_id: Any = None) -> Optional[List[PlannedPayment]]:
    """
    Validate the ``multiple_payments`` JSON of a profile.

    ``None`` means the profile has no payment schedule. A malformed document
    is logged and replaced by an empty schedule, so that profile contributes
    no expected salary instead of failing the whole summary.
    """
    if raw is None:
        return None
    try:
        return _PAYMENTS.validate_python(raw)
    except ValidationError as exc:
        logger.warning("Ignoring malformed multiple_payments for user %s: %s", user_id, exc.errors(include_url=False))
        return []


def parse_benefits(raw: Any, user_id: Any = None) -> List[Benefit]:
    """Validate ``beneficios`` entry by entry, dropping the malformed ones."""
    if not raw:
        return []
    if not isinstance(raw, list):
        logger.warning("Ignoring beneficios for user %s: expected a list, got %s", user_id, type(raw).__name__)
        return []

    benefits = []
    for entry in raw:
        try:
            benefits.append(_BENEFIT.validate_python(entry))
        except ValidationError as exc:
            logger.warning("Dropping malformed benefit for user %s: %s", user_id, exc.errors(include_url=False))
    return benefits


# --- Insights ---

Severity = Literal["low", "medium", "high"]


class Insight(Record):
    id: str
    title: str
    detail: str
    severity: Severity
    category: Optional[str] = None
    actionable: bool = False


# --- Dashboard summary (response) ---

class Output(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class DailyBalance(Output):
    date: str
    balance: float


class IncomeBreakdown(Output):
    salary: float
    benefits: float
    variable: float
    total: float


class ExpenseBreakdown(Output):
    fixed: float
    variable: float
    subscriptions: float
    total: float


class MonthlyOverview(Output):
    month: str
    income: IncomeBreakdown
    expenses: ExpenseBreakdown
    investments: float
    net_balance: float
    projected_balance: float
    change_percent: float


class CategoryData(Output):
    key: str
    value: float
    emoji: str
    color: str


class RecentTransaction(Output):
    id: int
    user_id: int
    name: str
    type: str
    value: float
    category: str
    created_at: str
    date: str


class ScheduledPayment(Output):
    id: int
    name: str
    due_date: str
    value: float
    logo_url: Optional[str] = None
    days_until: int
    is_overdue: bool


class UpcomingPayment(Output):
    id: int
    name: str
    due_date: str
    value: float
    days_until: int
    type: Literal["subscription", "recurring"] = "subscription"
    logo_url: Optional[str] = None


class GoalSnapshot(Output):
    id: int
    title: str
    current: float
    target: float
    due_date: str
    is_shared: bool = False
    icon: Optional[str] = None
    color: Optional[str] = None
    category: Optional[str] = None
    required_monthly: float = 0.0


class UserStat(Output):
    user_id: int
    name: str
    avatar_url: Optional[str] = None
    revenues: float = 0.0
    expenses: float = 0.0
    investments: float = 0.0


class SalaryByUser(Output):
    user_id: int
    name: str
    amount: float


class FamilySalaryBalance(Output):
    total: float
    by_user: List[SalaryByUser]


class BenefitsByUser(Output):
    user_id: int
    name: str
    benefits: List[Benefit]
    total: float


class FamilyBenefitsBalance(Output):
    total: float
    by_user: List[BenefitsByUser]
    used: float
    available: float


class InsightAction(Output):
    id: str
    label: str


class MainInsight(Output):
    severity: Severity
    message: str
    actions: List[InsightAction] = Field(default_factory=list)


class DashboardSummary(Output):
    current_balance: float
    projected_balance: float

    income: IncomeBreakdown
    expenses: ExpenseBreakdown
    investments: float

    monthly_overview: MonthlyOverview

    daily_balance_sparkline: List[DailyBalance]
    categories: List[CategoryData]
    recent_transactions: List[RecentTransaction]
    scheduled_payments: List[ScheduledPayment]
    goals: List[GoalSnapshot]
    user_stats: List[UserStat]

    upcoming_payments: List[UpcomingPayment]
    family_salary_balance: FamilySalaryBalance
    family_benefits_balance: FamilyBenefitsBalance

    insight: MainInsight


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
