from datetime import datetime, timedelta
from typing import Iterable, List, Optional

import pandas as pd

from categories import TransactionType, category_label
from schemas import Insight, InsightAction, MainInsight, SubscriptionRecord, TransactionRecord

HIGH_EXPENSES_THRESHOLD = 5000
DOMINANT_CATEGORY_SHARE = 0.3
SUBSCRIPTION_ALERT_DAYS = 7

STABLE_MESSAGE = "Sua situação financeira está estável."


def _money(value: float) -> str:
    return f"R$ {value:.2f}"


def generate_insights(
    transactions: Iterable[TransactionRecord],
    subscriptions: Iterable[SubscriptionRecord],
    now: datetime,
) -> List[Insight]:
    """
    Rule-based observations on one member's transactions for a period.

    ``transactions`` is the period already filtered by the caller; the
    subscription alert looks ``SUBSCRIPTION_ALERT_DAYS`` ahead of ``now``.
    """
    transactions = list(transactions)
    if not transactions:
        return [
            Insight(
                id="no-data",
                title="Sem dados suficientes",
                detail="Não há transações neste período para gerar insights. Adicione algumas transações primeiro!",
                severity="low",
            )
        ]

    df = pd.DataFrame(
        [{"Type": t.type.value, "Category": t.category.value, "Amount": t.amount} for t in transactions]
    )
    expenses = df[df["Type"] == TransactionType.EXPENSE.value]
    total_expenses = float(expenses["Amount"].sum())
    insights = []

    # 1. Overall spend
    if total_expenses > HIGH_EXPENSES_THRESHOLD:
        insights.append(
            Insight(
                id="high-expenses",
                title="Gastos Elevados",
                detail=f"Você gastou {_money(total_expenses)} neste período. Considere revisar suas despesas maiores.",
                severity="high",
                actionable=True,
            )
        )

    # 2. Dominant category
    if not expenses.empty:
        by_cat = expenses.groupby("Category")["Amount"].sum().sort_values(ascending=False, kind="mergesort")
        top_category, top_value = by_cat.index[0], float(by_cat.iloc[0])
        if top_value > total_expenses * DOMINANT_CATEGORY_SHARE:
            label = category_label(top_category)
            insights.append(
                Insight(
                    id="dominant-category",
                    title=f"Alto gasto em {label}",
                    detail=(
                        f"{label} representa {top_value / total_expenses * 100:.1f}% dos seus gastos "
                        f"({_money(top_value)}). Considere alternativas para reduzir."
                    ),
                    severity="medium",
                    category=top_category,
                    actionable=True,
                )
            )

    # 3. Period balance
    deposits = float(df[df["Type"] == TransactionType.DEPOSIT.value]["Amount"].sum())
    balance = deposits - total_expenses
    if balance < 0:
        insights.append(
            Insight(
                id="negative-balance",
                title="Saldo Negativo",
                detail=f"Suas despesas superaram suas receitas em {_money(abs(balance))}. É importante ajustar o orçamento.",
                severity="high",
                actionable=True,
            )
        )
    elif balance > 0:
        insights.append(
            Insight(
                id="positive-balance",
                title="Saldo Positivo! 🎉",
                detail=f"Parabéns! Você economizou {_money(balance)} neste período. Continue assim!",
                severity="low",
            )
        )

    # 4. Subscriptions due soon
    horizon = now + timedelta(days=SUBSCRIPTION_ALERT_DAYS)
    due_soon = [s for s in subscriptions if s.active and s.next_due_date is not None and s.next_due_date <= horizon]
    if due_soon:
        total = sum(s.amount for s in due_soon)
        insights.append(
            Insight(
                id="subscriptions-due",
                title=f"{len(due_soon)} assinatura(s) vencendo",
                detail=(
                    f"Você tem {len(due_soon)} assinatura(s) vencendo nos próximos {SUBSCRIPTION_ALERT_DAYS} dias. "
                    f"Total: {_money(total)}"
                ),
                severity="medium",
                actionable=True,
            )
        )

    return insights


def pick_main_insight(insights: Optional[List[Insight]]) -> MainInsight:
    """The first high or medium insight, else the first one, else a neutral message."""
    insights = insights or []
    found = next((i for i in insights if i.severity in ("high", "medium")), None)
    if found is None and insights:
        found = insights[0]

    if found is None:
        return MainInsight(severity="low", message=STABLE_MESSAGE, actions=[])

    return MainInsight(
        severity=found.severity,
        message=found.detail or found.title or "Insight disponível",
        actions=[InsightAction(id="review", label="Revisar detalhes")] if found.actionable else [],
    )
