import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from categories import category_label
from schemas import DashboardSummary


def sparkline_figure(summary: DashboardSummary):
    """
    Area chart of the running balance for the elapsed days of the month.
    """
    daily = pd.DataFrame([{"Date": p.date, "Balance": p.balance} for p in summary.daily_balance_sparkline])
    if daily.empty:
        return go.Figure().update_layout(title_text="Sem movimentações neste mês", height=300)

    daily["Date"] = pd.to_datetime(daily["Date"])
    fig = px.area(daily, x="Date", y="Balance", title="Saldo diário")
    fig.update_layout(height=300)
    return fig


def category_donut(summary: DashboardSummary):
    """
    Donut chart of variable spending by category.
    """
    by_cat = pd.DataFrame(
        [{"Category": category_label(c.key), "Amount": c.value, "Color": c.color} for c in summary.categories]
    )
    if by_cat.empty:
        return go.Figure().update_layout(title_text="Sem despesas variáveis")

    fig = px.pie(by_cat, values="Amount", names="Category", hole=0.4, title="Despesas variáveis por categoria")
    fig.update_traces(textposition="inside", textinfo="percent+label", marker=dict(colors=list(by_cat["Color"])))
    return fig


def income_vs_expense(summary: DashboardSummary):
    """
    Grouped bars of the month's income and expense breakdowns.
    """
    income, expenses = summary.income, summary.expenses
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=["Salário", "Benefícios", "Variável"],
            y=[income.salary, income.benefits, income.variable],
            name="Receitas",
            marker_color="#4CAF50",
        )
    )
    fig.add_trace(
        go.Bar(
            x=["Fixas", "Variáveis", "Investimentos"],
            y=[expenses.fixed, expenses.variable, summary.investments],
            name="Saídas",
            marker_color="#FF5252",
        )
    )
    fig.update_layout(barmode="group", title=f"Receitas x Despesas ({summary.monthly_overview.month})", height=400)
    return fig
