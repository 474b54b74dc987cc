"""
Data access for the dashboard.

Rows are read with SQLAlchemy and converted into the immutable records of
``schemas.py`` before they reach the summary engine.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from categories import TransactionType
from dashboard import month_window
from database import FinancialProfile, Subscription, Transaction, User
from schemas import (
    ProfileRecord,
    SubscriptionRecord,
    TransactionRecord,
    UserRef,
    parse_benefits,
    parse_multiple_payments,
)

logger = logging.getLogger(__name__)


@dataclass
class DashboardInputs:
    user_id: int
    users: List[UserRef] = field(default_factory=list)
    transactions: List[TransactionRecord] = field(default_factory=list)
    subscriptions: List[SubscriptionRecord] = field(default_factory=list)
    profiles: List[ProfileRecord] = field(default_factory=list)
    installments: List[TransactionRecord] = field(default_factory=list)


def _family_members(db: Session, user_id: int) -> List[User]:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return []
    if user.family_account is None:
        return [user]
    return list(user.family_account.users)


def family_user_ids(db: Session, user_id: int) -> List[int]:
    """Ids of everyone sharing the user's family account (just the user when there is none)."""
    return [u.id for u in _family_members(db, user_id)] or [user_id]


def load_family_users(db: Session, user_id: int) -> List[UserRef]:
    return [UserRef.model_validate(u) for u in _family_members(db, user_id)]


def load_recent_transactions(db: Session, member_ids: List[int], since: datetime, until: datetime) -> List[TransactionRecord]:
    """Family transactions whose effective date (date, else creation) falls in [since, until]."""
    effective = func.coalesce(Transaction.date, Transaction.created_at)
    rows = (
        db.query(Transaction)
        .filter(Transaction.user_id.in_(member_ids), effective >= since, effective <= until)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )
    return [TransactionRecord.model_validate(r) for r in rows]


def load_active_subscriptions(db: Session, member_ids: List[int]) -> List[SubscriptionRecord]:
    rows = (
        db.query(Subscription)
        .filter(Subscription.user_id.in_(member_ids), Subscription.active.is_(True))
        .order_by(Subscription.id)
        .all()
    )
    return [SubscriptionRecord.model_validate(r) for r in rows]


def to_profile_record(row: FinancialProfile) -> ProfileRecord:
    """
    Validate a profile row, JSON columns included.

    A payment day outside 1-31 is dropped on its own. A profile that still
    fails validation is kept with an empty payment schedule so it
    contributes nothing, rather than aborting the summary.
    """
    payment_day = row.dia_pagamento or None
    if payment_day is not None and not 1 <= payment_day <= 31:
        logger.warning("Ignoring payment day %s of user %s", payment_day, row.user_id)
        payment_day = None

    try:
        return ProfileRecord(
            user_id=row.user_id,
            renda_fixa=row.renda_fixa or 0.0,
            renda_variavel_media=row.renda_variavel_media or 0.0,
            dia_pagamento=payment_day,
            multiple_payments=parse_multiple_payments(row.multiple_payments, row.user_id),
            beneficios=parse_benefits(row.beneficios, row.user_id),
        )
    except ValidationError as exc:
        logger.warning("Ignoring malformed financial profile of user %s: %s", row.user_id, exc.errors(include_url=False))
        return ProfileRecord(user_id=row.user_id, multiple_payments=[])


def load_financial_profiles(db: Session, member_ids: List[int]) -> List[ProfileRecord]:
    rows = (
        db.query(FinancialProfile)
        .filter(FinancialProfile.user_id.in_(member_ids))
        .order_by(FinancialProfile.user_id)
        .all()
    )
    return [to_profile_record(r) for r in rows]


def load_next_month_installments(db: Session, member_ids: List[int], start: datetime, end: datetime) -> List[TransactionRecord]:
    rows = (
        db.query(Transaction)
        .filter(
            Transaction.user_id.in_(member_ids),
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= start,
            Transaction.date <= end,
            Transaction.installments.isnot(None),
        )
        .order_by(Transaction.date, Transaction.id)
        .all()
    )
    return [TransactionRecord.model_validate(r) for r in rows]


def load_dashboard_inputs(db: Session, user_id: int, now: datetime) -> DashboardInputs:
    """Everything the summary engine needs for ``user_id``'s family at ``now``."""
    window = month_window(now)
    member_ids = family_user_ids(db, user_id)
    return DashboardInputs(
        user_id=user_id,
        users=load_family_users(db, user_id),
        transactions=load_recent_transactions(db, member_ids, window.history_start, window.end),
        subscriptions=load_active_subscriptions(db, member_ids),
        profiles=load_financial_profiles(db, member_ids),
        installments=load_next_month_installments(db, member_ids, window.next_start, window.next_end),
    )
