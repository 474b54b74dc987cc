import itertools
from datetime import datetime

import bcrypt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from categories import PaymentMethod, TransactionCategory, TransactionType
from database import init_db
from schemas import PlannedPayment, ProfileRecord, SubscriptionRecord, TransactionRecord, UserRef

_ids = itertools.count(1)

DEPOSIT = TransactionType.DEPOSIT
EXPENSE = TransactionType.EXPENSE
INVESTMENT = TransactionType.INVESTMENT


def txn(name, type_, category, amount, when: datetime, user_id=1, **extra) -> TransactionRecord:
    extra.setdefault("created_at", when)
    extra.setdefault("date", when)
    return TransactionRecord(
        id=extra.pop("id", next(_ids)),
        user_id=user_id,
        name=name,
        type=type_,
        category=category,
        amount=amount,
        **extra,
    )


def salary(amount, when, user_id=1, name="Salário", **extra) -> TransactionRecord:
    return txn(name, DEPOSIT, TransactionCategory.SALARY, amount, when, user_id=user_id, **extra)


def expense(name, amount, when, category=TransactionCategory.OTHER, user_id=1, **extra) -> TransactionRecord:
    return txn(name, EXPENSE, category, amount, when, user_id=user_id, **extra)


def subscription(name, amount, due_date, next_due_date=None, **extra) -> SubscriptionRecord:
    return SubscriptionRecord(
        id=extra.pop("id", next(_ids)),
        user_id=extra.pop("user_id", 1),
        name=name,
        amount=amount,
        due_date=due_date,
        next_due_date=next_due_date,
        **extra,
    )


def profile(user_id=1, renda_fixa=0.0, dia_pagamento=None, payments=None, **extra) -> ProfileRecord:
    schedule = None
    if payments is not None:
        schedule = [PlannedPayment(label=label, day=day, value=value) for label, day, value in payments]
    return ProfileRecord(
        user_id=user_id,
        renda_fixa=renda_fixa,
        dia_pagamento=dia_pagamento,
        multiple_payments=schedule,
        **extra,
    )


def user(id, name=None, email=None) -> UserRef:
    return UserRef(id=id, name=name, email=email)


def benefit_payment(amount, when, user_id=1, name="Padaria") -> TransactionRecord:
    return expense(name, amount, when, category=TransactionCategory.FOOD, user_id=user_id, payment_method=PaymentMethod.BENEFIT)


def memory_sessionmaker():
    """A fresh in-memory database shared by every connection of the returned factory."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
