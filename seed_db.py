import logging
from datetime import datetime, timedelta

import bcrypt
from dateutil.relativedelta import relativedelta

from categories import GoalStatus, PaymentMethod, TransactionCategory, TransactionType
from config import configure_logging
from database import FamilyAccount, FinancialProfile, Goal, SessionLocal, Subscription, Transaction, User, init_db

logger = logging.getLogger(__name__)


def _hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def seed_family(db, now: datetime | None = None):
    """Demo family: two members, their income profiles and three months of activity."""
    now = now or datetime.now()
    month_start = datetime(now.year, now.month, 1)

    family = FamilyAccount(name="Família Silva")
    ana = User(name="Ana", email="ana@finance.local", password_hash=_hash("ana123"), family_account=family)
    bruno = User(name="Bruno", email="bruno@finance.local", password_hash=_hash("bruno123"), family_account=family)
    db.add_all([family, ana, bruno])
    db.flush()

    db.add_all([
        FinancialProfile(
            user_id=ana.id,
            renda_fixa=6000.0,
            multiple_payments=[
                {"label": "Salário (adiantamento)", "day": 5, "value": 2400.0},
                {"label": "Salário", "day": 20, "value": 3600.0},
            ],
            beneficios=[{"type": "VR", "value": 800.0, "category": "FOOD"}],
        ),
        FinancialProfile(user_id=bruno.id, renda_fixa=4200.0, dia_pagamento=10, beneficios=[]),
    ])

    for months_back in range(3, -1, -1):
        start = month_start - relativedelta(months=months_back)
        rows = [
            (ana.id, "Aluguel", TransactionType.EXPENSE, TransactionCategory.HOUSING, 2200.0, 1),
            (ana.id, "Netflix", TransactionType.EXPENSE, TransactionCategory.ENTERTAINMENT, 39.90, 3),
            (bruno.id, "Mercado Extra", TransactionType.EXPENSE, TransactionCategory.FOOD, 650.0, 4),
            (ana.id, "Salário (adiantamento)", TransactionType.DEPOSIT, TransactionCategory.SALARY, 2400.0, 5),
            (bruno.id, "Salário", TransactionType.DEPOSIT, TransactionCategory.SALARY, 4200.0, 10),
            (ana.id, "Tesouro Selic", TransactionType.INVESTMENT, TransactionCategory.OTHER, 500.0, 12),
        ]
        for user_id, name, type_, category, amount, day in rows:
            when = start + timedelta(days=day - 1)
            if when > now:
                continue
            db.add(Transaction(
                user_id=user_id,
                created_by_id=user_id,
                name=name,
                type=type_,
                category=category,
                amount=amount,
                payment_method=PaymentMethod.PIX,
                date=when,
                created_at=when,
            ))

    # A purchase split in three: one installment per month from the current one
    for n in range(3):
        when = month_start + relativedelta(months=n, days=14)
        db.add(Transaction(
            user_id=bruno.id,
            created_by_id=bruno.id,
            name=f"Geladeira {n + 1}/3",
            type=TransactionType.EXPENSE,
            category=TransactionCategory.HOUSING,
            amount=1100.0,
            payment_method=PaymentMethod.CREDIT_CARD,
            date=when,
            created_at=month_start,
            installments=3,
        ))

    db.add_all([
        Subscription(user_id=ana.id, name="Netflix", amount=39.90, due_date=month_start + timedelta(days=2)),
        Subscription(user_id=bruno.id, name="Spotify", amount=21.90, due_date=month_start + timedelta(days=17)),
        Goal(
            user_id=ana.id,
            name="Reserva de emergência",
            target_amount=20000.0,
            current_amount=6500.0,
            deadline=month_start + relativedelta(months=12),
            status=GoalStatus.ACTIVE,
            icon="🛟",
        ),
    ])
    db.commit()


def seed_users():
    configure_logging()
    init_db()
    db = SessionLocal()

    # Check if users exist
    if db.query(User).first():
        logger.info("Users already exist. Skipping seed.")
        db.close()
        return

    seed_family(db)
    logger.info("Database initialized with a demo family (ana@finance.local / ana123, bruno@finance.local / bruno123).")
    db.close()

if __name__ == "__main__":
    seed_users()
