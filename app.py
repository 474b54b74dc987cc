import time
from datetime import datetime

import bcrypt
import pandas as pd
import streamlit as st

from charts import category_donut, income_vs_expense, sparkline_figure
from config import configure_logging
from database import SessionLocal, User, init_db
from service import dashboard_for_user

# --- Configuration ---
st.set_page_config(page_title="Family Finance Tracker", layout="wide", page_icon="💰")
configure_logging()

# --- Database Session ---
init_db()

if "db" not in st.session_state:
    st.session_state.db = SessionLocal()

def get_db():
    return st.session_state.db

# --- Authentication ---
def check_login():
    if st.session_state.get("user_id"):
        return True

    st.title("💰 Family Finance Tracker")
    email = st.text_input("Email", placeholder="Enter your email", key="login_user")
    password = st.text_input("Password", type="password", placeholder="Enter your password", key="login_pass")

    if st.button("Sign In", key="login_btn", type="primary", use_container_width=True):
        user = get_db().query(User).filter(User.email == email).first()
        if user and bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            st.session_state["user_id"] = user.id
            st.session_state["user_name"] = user.name or user.email
            st.success("✅ Login successful!")
            time.sleep(0.5)
            st.rerun()
        else:
            st.error("❌ Invalid credentials")
    return False

if not check_login():
    st.stop()

# --- Data Loading ---
summary = dashboard_for_user(get_db(), st.session_state["user_id"], datetime.now())

# --- Main App ---
st.title(f"💰 Family Finance Tracker ({summary.monthly_overview.month})")

with st.sidebar:
    st.header(st.session_state.get("user_name") or "Conta")
    if st.button("Sign Out"):
        st.session_state.clear()
        st.rerun()

col1, col2, col3, col4 = st.columns(4)
col1.metric("💰 Receitas", f"R$ {summary.income.total:,.2f}")
col2.metric("💸 Despesas", f"R$ {summary.expenses.total:,.2f}")
col3.metric(
    "📊 Saldo atual",
    f"R$ {summary.current_balance:,.2f}",
    delta=f"{summary.monthly_overview.change_percent:.1f}% vs mês anterior",
)
col4.metric("🔮 Saldo previsto", f"R$ {summary.projected_balance:,.2f}", help="Projeção até o fim do mês menos os compromissos do próximo mês.")

severity_box = {"high": st.error, "medium": st.warning, "low": st.info}
severity_box[summary.insight.severity](summary.insight.message)

left, right = st.columns(2)
left.plotly_chart(sparkline_figure(summary), use_container_width=True)
right.plotly_chart(category_donut(summary), use_container_width=True)
st.plotly_chart(income_vs_expense(summary), use_container_width=True)

st.subheader("Próximos vencimentos")
if summary.upcoming_payments:
    st.dataframe(
        pd.DataFrame([{"Nome": p.name, "Vencimento": p.due_date[:10], "Valor": p.value, "Dias": p.days_until} for p in summary.upcoming_payments]),
        use_container_width=True,
        hide_index=True,
    )
else:
    st.caption("Nenhum vencimento nos próximos 60 dias.")

st.subheader("Metas")
for goal in summary.goals:
    progress = min(1.0, goal.current / goal.target) if goal.target > 0 else 0.0
    st.progress(progress, text=f"{goal.title}: R$ {goal.current:,.2f} de R$ {goal.target:,.2f} (R$ {goal.required_monthly:,.2f}/mês)")
