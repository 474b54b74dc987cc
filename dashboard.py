# dashboard.py - monthly summary engine (classified totals, projection and daily balance)

from __future__ import annotations

import logging
import math
from calendar import monthrange
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta

from categories import (
    CATEGORY_COLORS,
    CATEGORY_EMOJIS,
    DEFAULT_COLOR,
    DEFAULT_EMOJI,
    PaymentMethod,
    TransactionCategory,
    TransactionType,
)
from classification import Classification, RecurrenceIndex, classify_transaction
from insights import STABLE_MESSAGE
from schemas import (
    BenefitsByUser,
    CategoryData,
    DailyBalance,
    DashboardSummary,
    ExpenseBreakdown,
    FamilyBenefitsBalance,
    FamilySalaryBalance,
    GoalSnapshot,
    IncomeBreakdown,
    MainInsight,
    MonthlyOverview,
    ProfileRecord,
    RecentTransaction,
    SalaryByUser,
    ScheduledPayment,
    SubscriptionRecord,
    TransactionRecord,
    UpcomingPayment,
    UserRef,
    UserStat,
)

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 3
SALARY_MATCH_TOLERANCE = 0.01
RECENT_LIMIT = 10
SCHEDULED_DAYS = 30
SCHEDULED_LIMIT = 10
UPCOMING_DAYS = 60

DEFAULT_INSIGHT = MainInsight(severity="low", message=STABLE_MESSAGE, actions=[])


@dataclass(frozen=True)
class MonthWindow:
    """Calendar boundaries derived from the caller's ``now`` (inclusive ends)."""

    now: datetime
    start: datetime
    end: datetime
    previous_start: datetime
    previous_end: datetime
    next_start: datetime
    next_end: datetime
    history_start: datetime

    @property
    def current_day(self) -> int:
        return self.now.day

    @property
    def days_in_month(self) -> int:
        return self.end.day

    @property
    def month(self) -> str:
        return f"{self.start:%Y-%m}"

    def contains(self, when: datetime) -> bool:
        return self.start <= when <= self.end


def month_window(now: datetime) -> MonthWindow:
    start = datetime(now.year, now.month, 1)
    next_start = start + relativedelta(months=1)
    previous_start = start - relativedelta(months=1)
    tick = timedelta(microseconds=1)
    return MonthWindow(
        now=now,
        start=start,
        end=next_start - tick,
        previous_start=previous_start,
        previous_end=start - tick,
        next_start=next_start,
        next_end=next_start + relativedelta(months=1) - tick,
        history_start=now - relativedelta(months=HISTORY_MONTHS),
    )


def _chronological(txn: TransactionRecord):
    return (txn.effective_date, txn.id)


def _is_salary_deposit(txn: TransactionRecord) -> bool:
    return txn.type == TransactionType.DEPOSIT and txn.category == TransactionCategory.SALARY


def _received_on(transactions: Iterable[TransactionRecord], user_id: int, day: int, value: float) -> bool:
    """A SALARY deposit of ``value`` landed for ``user_id`` on ``day``."""
    return any(
        _is_salary_deposit(t)
        and t.user_id == user_id
        and t.effective_date.day == day
        and abs(t.amount - value) < SALARY_MATCH_TOLERANCE
        for t in transactions
    )


# --- Expected salary ---

def resolve_expected_salary(profiles: Iterable[ProfileRecord], month_end: datetime) -> float:
    """
    Salary the family declared for this month, received or not.

    A payment schedule takes precedence over the single payment day, which
    takes precedence over a bare fixed income.
    """
    last_day = month_end.day
    expected = 0.0
    for profile in profiles:
        if profile.multiple_payments is not None:
            expected += sum(
                p.value for p in profile.multiple_payments if p.is_salary and 1 <= p.day <= last_day
            )
        elif profile.dia_pagamento and profile.renda_fixa > 0:
            if 1 <= profile.dia_pagamento <= last_day:
                expected += profile.renda_fixa
        elif profile.renda_fixa > 0:
            expected += profile.renda_fixa
    return expected


# --- Aggregation ---

@dataclass(frozen=True)
class Totals:
    salary: float = 0.0
    expected_salary: float = 0.0
    benefits: float = 0.0
    variable_income: float = 0.0
    fixed_expenses: float = 0.0
    variable_expenses: float = 0.0
    subscriptions: float = 0.0
    investments: float = 0.0
    classified: Tuple[Tuple[TransactionRecord, Classification], ...] = ()

    @property
    def effective_salary(self) -> float:
        return max(self.salary, self.expected_salary)

    @property
    def income_total(self) -> float:
        return self.effective_salary + self.benefits + self.variable_income

    @property
    def expenses_total(self) -> float:
        return self.fixed_expenses + self.variable_expenses

    @property
    def net_balance(self) -> float:
        return self.income_total - self.expenses_total - self.investments


def current_month_subscriptions(subscriptions: Iterable[SubscriptionRecord], month_end: datetime) -> List[SubscriptionRecord]:
    """Active recurring subscriptions already due, or due by the end of the month."""
    return [s for s in subscriptions if s.active and s.recurring and s.effective_due_date <= month_end]


def aggregate(
    transactions: Iterable[TransactionRecord],
    history: Iterable[TransactionRecord],
    expected_salary: float,
    subscriptions: Iterable[SubscriptionRecord],
    month_end: datetime,
) -> Totals:
    """
    Classify the month's transactions and fold them into bucket totals.

    Subscriptions due this month are billed as fixed expenses, except those
    already paid by the same member through a same-name transaction that
    classified as fixed.
    """
    subscriptions = list(subscriptions)
    subscription_names = {s.name.lower() for s in subscriptions if s.active}
    index = RecurrenceIndex(history)

    sums = defaultdict(float)
    classified = []
    paid_fixed = Counter()
    for txn in sorted(transactions, key=_chronological):
        recurring = txn.type == TransactionType.EXPENSE and index.is_recurring(txn)
        classification = classify_transaction(
            txn.type,
            txn.category,
            txn.name,
            is_recurring=recurring,
            is_subscription=txn.name.lower() in subscription_names,
        )
        sums[classification.bucket] += txn.amount
        if classification.is_fixed_expense:
            paid_fixed[(txn.name.lower(), txn.user_id)] += 1
        classified.append((txn, classification))

    # Each fixed payment settles at most one bill of the same member
    due = []
    for s in sorted(current_month_subscriptions(subscriptions, month_end), key=lambda s: s.id):
        key = (s.name.lower(), s.user_id)
        if paid_fixed[key] > 0:
            paid_fixed[key] -= 1
        else:
            due.append(s)
    subscriptions_total = sum((s.amount for s in due), 0.0)

    return Totals(
        salary=sums["salary"],
        expected_salary=expected_salary,
        benefits=sums["benefit"],
        variable_income=sums["variable_income"],
        fixed_expenses=sums["fixed_expense"] + subscriptions_total,
        variable_expenses=sums["variable_expense"],
        subscriptions=subscriptions_total,
        investments=sums["investment"],
        classified=tuple(classified),
    )


# --- Projection ---

@dataclass(frozen=True)
class Projection:
    daily_average_expense: float
    projected_expenses: float
    expected_salary_remaining: float
    projected_income: float
    next_month_expenses: float
    projected_balance: float


def next_due_in_month(subscription: SubscriptionRecord, month_start: datetime) -> datetime:
    """Next due date, or the due day carried into ``month_start``'s month (clamped to its length)."""
    if subscription.next_due_date:
        return subscription.next_due_date
    last_day = monthrange(month_start.year, month_start.month)[1]
    return month_start.replace(day=min(subscription.due_date.day, last_day))


def next_month_obligations(
    subscriptions: Iterable[SubscriptionRecord],
    installments: Iterable[TransactionRecord],
    window: MonthWindow,
) -> float:
    """Recurring bills and pre-scheduled installments falling in the next calendar month."""
    subscriptions_total = sum(
        s.amount
        for s in subscriptions
        if s.active and s.recurring and window.next_start <= next_due_in_month(s, window.next_start) <= window.next_end
    )
    installments_total = sum(
        t.amount
        for t in installments
        if t.type == TransactionType.EXPENSE
        and t.installments is not None
        and t.date is not None
        and window.next_start <= t.date <= window.next_end
    )
    return float(subscriptions_total + installments_total)


def project(totals: Totals, current_day: int, days_in_month: int, next_month_expenses: float = 0.0) -> Projection:
    """Linear month-end extrapolation of the expenses, plus salary still to come."""
    expenses = totals.expenses_total
    daily_average = expenses / current_day if current_day > 0 else 0.0
    projected_expenses = expenses + daily_average * (days_in_month - current_day)

    remaining_salary = max(0.0, totals.expected_salary - totals.salary)
    projected_income = totals.income_total + remaining_salary

    return Projection(
        daily_average_expense=daily_average,
        projected_expenses=projected_expenses,
        expected_salary_remaining=remaining_salary,
        projected_income=projected_income,
        next_month_expenses=next_month_expenses,
        projected_balance=projected_income - projected_expenses - totals.investments - next_month_expenses,
    )


# --- Daily balance ---

def expected_salaries_by_day(
    profiles: Iterable[ProfileRecord],
    transactions: Sequence[TransactionRecord],
    current_day: int,
) -> Dict[int, float]:
    """
    Expected salary placed on its payment day of the current month.

    Scheduled payments count once their day has passed (or the deposit
    already posted). A profile without a payment day counts on day 1, with
    the salary actually received when there is any.
    """
    by_day: Dict[int, float] = defaultdict(float)
    for profile in profiles:
        if profile.multiple_payments is not None:
            for payment in profile.multiple_payments:
                if not payment.is_salary:
                    continue
                if payment.day <= current_day or _received_on(transactions, profile.user_id, payment.day, payment.value):
                    by_day[payment.day] += payment.value
        elif profile.dia_pagamento and profile.renda_fixa > 0:
            day = profile.dia_pagamento
            if day <= current_day or _received_on(transactions, profile.user_id, day, profile.renda_fixa):
                by_day[day] += profile.renda_fixa
        elif profile.renda_fixa > 0:
            received = sum(t.amount for t in transactions if _is_salary_deposit(t) and t.user_id == profile.user_id)
            by_day[1] += received if received > 0 else profile.renda_fixa
    return dict(by_day)


def build_sparkline(
    transactions: Iterable[TransactionRecord],
    expected_by_day: Dict[int, float],
    window: MonthWindow,
) -> List[DailyBalance]:
    """Cumulative balance for each elapsed day of the month, starting from zero."""
    by_day = defaultdict(list)
    for txn in sorted(transactions, key=_chronological):
        when = txn.effective_date
        if window.contains(when):
            by_day[when.day].append(txn)

    running = 0.0
    series = []
    for day in range(1, min(window.current_day, window.days_in_month) + 1):
        day_txns = by_day.get(day, [])
        income = sum(t.amount for t in day_txns if t.type == TransactionType.DEPOSIT)
        expenses = sum(t.amount for t in day_txns if t.type == TransactionType.EXPENSE)
        investments = sum(t.amount for t in day_txns if t.type == TransactionType.INVESTMENT)

        expected = expected_by_day.get(day, 0.0)
        received = sum(
            t.amount for t in day_txns
            if _is_salary_deposit(t) and abs(t.amount - expected) < SALARY_MATCH_TOLERANCE
        )
        missing_salary = expected - received if expected > 0 and received < expected else 0.0

        running += income + missing_salary - expenses - investments
        series.append(
            DailyBalance(date=date(window.start.year, window.start.month, day).isoformat(), balance=running)
        )
    return series


# --- Family balances ---

def _users_by_id(users: Iterable[UserRef]) -> Dict[int, UserRef]:
    return {u.id: u for u in users}


def _display_name(users: Dict[int, UserRef], user_id: int) -> str:
    user = users.get(user_id)
    return user.display_name if user else "Usuário"


def family_salary_balance(
    profiles: Iterable[ProfileRecord],
    transactions: Sequence[TransactionRecord],
    users: Iterable[UserRef],
    window: MonthWindow,
) -> FamilySalaryBalance:
    names = _users_by_id(users)
    last_day = window.days_in_month
    by_user = []
    for profile in profiles:
        amount = 0.0
        if profile.multiple_payments is not None:
            for payment in profile.multiple_payments:
                if payment.is_salary and (
                    payment.day <= last_day
                    or _received_on(transactions, profile.user_id, payment.day, payment.value)
                ):
                    amount += payment.value
        elif profile.dia_pagamento and profile.renda_fixa > 0:
            day = profile.dia_pagamento
            if day <= last_day or _received_on(transactions, profile.user_id, day, profile.renda_fixa):
                amount = profile.renda_fixa
        elif profile.renda_fixa > 0:
            received = sum(t.amount for t in transactions if _is_salary_deposit(t) and t.user_id == profile.user_id)
            amount = received if received > 0 else profile.renda_fixa

        if amount > 0:
            by_user.append(SalaryByUser(user_id=profile.user_id, name=_display_name(names, profile.user_id), amount=amount))

    return FamilySalaryBalance(total=sum(u.amount for u in by_user), by_user=by_user)


def family_benefits_balance(
    profiles: Iterable[ProfileRecord],
    transactions: Sequence[TransactionRecord],
    users: Iterable[UserRef],
) -> FamilyBenefitsBalance:
    names = _users_by_id(users)
    by_user = []
    for profile in profiles:
        if not profile.beneficios:
            continue
        by_user.append(
            BenefitsByUser(
                user_id=profile.user_id,
                name=_display_name(names, profile.user_id),
                benefits=list(profile.beneficios),
                total=sum(b.value for b in profile.beneficios),
            )
        )

    available = sum(u.total for u in by_user)
    used = sum(t.amount for t in transactions if t.payment_method == PaymentMethod.BENEFIT)
    return FamilyBenefitsBalance(total=available, by_user=by_user, used=used, available=available - used)


# --- Tabular breakdowns ---

def transactions_to_df(transactions: Iterable[TransactionRecord]) -> pd.DataFrame:
    rows = [
        {
            "Date": t.effective_date,
            "Amount": t.amount,
            "Type": t.type.value,
            "Category": t.category.value,
            "Name": t.name,
            "UserId": t.user_id,
            "CreatorId": t.created_by_id or t.user_id,
        }
        for t in transactions
    ]
    if not rows:
        return pd.DataFrame(columns=["Date", "Amount", "Type", "Category", "Name", "UserId", "CreatorId"])
    df = pd.DataFrame(rows)
    df["Date"] = pd.to_datetime(df["Date"])
    return df


def raw_net(df: pd.DataFrame) -> float:
    """Deposits minus expenses minus investments, without any classification."""
    if df.empty:
        return 0.0
    by_type = df.groupby("Type")["Amount"].sum()
    return float(
        by_type.get(TransactionType.DEPOSIT.value, 0.0)
        - by_type.get(TransactionType.EXPENSE.value, 0.0)
        - by_type.get(TransactionType.INVESTMENT.value, 0.0)
    )


def change_percent(net_balance: float, previous_net: float) -> float:
    if previous_net == 0:
        return 0.0
    return (net_balance - previous_net) / abs(previous_net) * 100


def variable_expense_categories(totals: Totals) -> List[CategoryData]:
    """Variable-expense spend per category, largest first."""
    df = transactions_to_df(t for t, c in totals.classified if c.is_variable_expense)
    if df.empty:
        return []

    by_cat = df.groupby("Category")["Amount"].sum().reset_index()
    by_cat = by_cat.sort_values(["Amount", "Category"], ascending=[False, True], kind="mergesort")
    return [
        CategoryData(
            key=row.Category,
            value=float(row.Amount),
            emoji=CATEGORY_EMOJIS.get(row.Category, DEFAULT_EMOJI),
            color=CATEGORY_COLORS.get(row.Category, DEFAULT_COLOR),
        )
        for row in by_cat.itertuples(index=False)
    ]


def user_stats(transactions: Sequence[TransactionRecord], users: Iterable[UserRef]) -> List[UserStat]:
    """Revenues, expenses and investments per member who recorded them."""
    df = transactions_to_df(transactions)
    if df.empty:
        return []

    names = _users_by_id(users)
    pivot = df.pivot_table(index="CreatorId", columns="Type", values="Amount", aggfunc="sum", fill_value=0.0)
    stats = []
    for creator_id, row in pivot.sort_index().iterrows():
        creator_id = int(creator_id)
        user = names.get(creator_id)
        stats.append(
            UserStat(
                user_id=creator_id,
                name=_display_name(names, creator_id),
                avatar_url=user.image if user else None,
                revenues=float(row.get(TransactionType.DEPOSIT.value, 0.0)),
                expenses=float(row.get(TransactionType.EXPENSE.value, 0.0)),
                investments=float(row.get(TransactionType.INVESTMENT.value, 0.0)),
            )
        )
    return stats


def recent_transactions(transactions: Iterable[TransactionRecord], limit: int = RECENT_LIMIT) -> List[RecentTransaction]:
    latest = sorted(transactions, key=lambda t: (t.created_at, t.id), reverse=True)[:limit]
    return [
        RecentTransaction(
            id=t.id,
            user_id=t.user_id,
            name=t.name or "Transação",
            type=t.type.value,
            value=t.amount,
            category=t.category.value,
            created_at=t.created_at.isoformat(),
            date=t.effective_date.isoformat(),
        )
        for t in latest
    ]


def _days_until(due: datetime, now: datetime) -> int:
    return math.ceil((due - now).total_seconds() / 86400)


def _due_within(subscriptions: Iterable[SubscriptionRecord], now: datetime, days: int) -> List[SubscriptionRecord]:
    horizon = now + timedelta(days=days)
    due = [s for s in subscriptions if now <= s.effective_due_date <= horizon]
    return sorted(due, key=lambda s: (s.effective_due_date, s.id))


def scheduled_payments(subscriptions: Iterable[SubscriptionRecord], now: datetime) -> List[ScheduledPayment]:
    payments = []
    for sub in _due_within(subscriptions, now, SCHEDULED_DAYS)[:SCHEDULED_LIMIT]:
        days_until = _days_until(sub.effective_due_date, now)
        payments.append(
            ScheduledPayment(
                id=sub.id,
                name=sub.name,
                due_date=sub.effective_due_date.isoformat(),
                value=sub.amount,
                logo_url=sub.logo_url,
                days_until=days_until,
                is_overdue=days_until < 0,
            )
        )
    return payments


def upcoming_payments(subscriptions: Iterable[SubscriptionRecord], now: datetime) -> List[UpcomingPayment]:
    payments = [
        UpcomingPayment(
            id=sub.id,
            name=sub.name,
            due_date=sub.effective_due_date.isoformat(),
            value=sub.amount,
            days_until=_days_until(sub.effective_due_date, now),
            type="subscription",
            logo_url=sub.logo_url,
        )
        for sub in _due_within(subscriptions, now, UPCOMING_DAYS)
    ]
    return sorted(payments, key=lambda p: p.days_until)


# --- Assembly ---

def build_dashboard_summary(
    transactions: Iterable[TransactionRecord],
    subscriptions: Iterable[SubscriptionRecord],
    profiles: Iterable[ProfileRecord],
    now: datetime,
    *,
    installments: Iterable[TransactionRecord] = (),
    users: Iterable[UserRef] = (),
    goals: Iterable[GoalSnapshot] = (),
    insight: Optional[MainInsight] = None,
) -> DashboardSummary:
    """
    Build the monthly dashboard for one family.

    ``transactions`` should cover at least the trailing three months; older
    rows are ignored. Everything is derived from the arguments, ``now``
    included, so identical inputs give identical summaries.
    """
    window = month_window(now)
    transactions = sorted(transactions, key=_chronological)
    subscriptions = sorted(subscriptions, key=lambda s: s.id)
    profiles = sorted(profiles, key=lambda p: p.user_id)
    users = list(users)

    history = [t for t in transactions if window.history_start <= t.effective_date <= window.end]
    current = [t for t in transactions if window.contains(t.effective_date)]
    previous = [t for t in transactions if window.previous_start <= t.effective_date <= window.previous_end]

    expected_salary = resolve_expected_salary(profiles, window.end)
    totals = aggregate(current, history, expected_salary, subscriptions, window.end)
    projection = project(
        totals,
        window.current_day,
        window.days_in_month,
        next_month_obligations(subscriptions, installments, window),
    )
    sparkline = build_sparkline(current, expected_salaries_by_day(profiles, current, window.current_day), window)

    logger.debug(
        "Summary %s: income=%.2f expenses=%.2f investments=%.2f projected=%.2f",
        window.month, totals.income_total, totals.expenses_total, totals.investments, projection.projected_balance,
    )

    income = IncomeBreakdown(
        salary=totals.effective_salary,
        benefits=totals.benefits,
        variable=totals.variable_income,
        total=totals.income_total,
    )
    expenses = ExpenseBreakdown(
        fixed=totals.fixed_expenses,
        variable=totals.variable_expenses,
        subscriptions=totals.subscriptions,
        total=totals.expenses_total,
    )

    return DashboardSummary(
        current_balance=totals.net_balance,
        projected_balance=projection.projected_balance,
        income=income,
        expenses=expenses,
        investments=totals.investments,
        monthly_overview=MonthlyOverview(
            month=window.month,
            income=income,
            expenses=expenses,
            investments=totals.investments,
            net_balance=totals.net_balance,
            projected_balance=projection.projected_balance,
            change_percent=change_percent(totals.net_balance, raw_net(transactions_to_df(previous))),
        ),
        daily_balance_sparkline=sparkline,
        categories=variable_expense_categories(totals),
        recent_transactions=recent_transactions(current),
        scheduled_payments=scheduled_payments(subscriptions, now),
        goals=list(goals),
        user_stats=user_stats(current, users),
        upcoming_payments=upcoming_payments(subscriptions, now),
        family_salary_balance=family_salary_balance(profiles, current, users, window),
        family_benefits_balance=family_benefits_balance(profiles, current, users),
        insight=insight or DEFAULT_INSIGHT,
    )
