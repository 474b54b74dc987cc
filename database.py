from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from categories import GoalStatus, PaymentMethod, TransactionCategory, TransactionType
from config import DATABASE_URL

# Database Setup
# Default to local SQLite, but allow override for Postgres via DATABASE_URL
engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {})
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# --- Models ---

class FamilyAccount(Base):
    __tablename__ = "family_accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String)

    users = relationship("User", back_populates="family_account", order_by="User.created_at")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True)
    password_hash = Column(String) # Store bcrypt hash, not plain text
    image = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)

    # Users sharing an account see each other's data on the dashboard
    family_account_id = Column(Integer, ForeignKey("family_accounts.id"), nullable=True)
    family_account = relationship("FamilyAccount", back_populates="users")

    financial_profile = relationship("FinancialProfile", back_populates="user", uselist=False)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    name = Column(String)
    type = Column(Enum(TransactionType, native_enum=False))
    category = Column(Enum(TransactionCategory, native_enum=False))
    payment_method = Column(Enum(PaymentMethod, native_enum=False), default=PaymentMethod.OTHER)
    amount = Column(Float)

    # Falls back to created_at when the user did not pick a date
    date = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.now, index=True)

    # Number of installments for split purchases (each installment is its own row)
    installments = Column(Integer, nullable=True)

    user = relationship("User", foreign_keys=[user_id])
    created_by = relationship("User", foreign_keys=[created_by_id])


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String)
    amount = Column(Float)
    due_date = Column(DateTime)
    next_due_date = Column(DateTime, nullable=True)
    recurring = Column(Boolean, default=True)
    active = Column(Boolean, default=True)
    logo_url = Column(String, nullable=True)


class FinancialProfile(Base):
    __tablename__ = "financial_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True)

    renda_fixa = Column(Float, default=0.0)
    renda_variavel_media = Column(Float, default=0.0)
    dia_pagamento = Column(Integer, nullable=True) # Day of month (1-31)

    # [{"label": "Salário", "day": 5, "value": 2500.0}, ...]
    multiple_payments = Column(JSON, nullable=True)
    # [{"type": "VR", "value": 600.0, "notes": "...", "category": "FOOD"}, ...]
    beneficios = Column(JSON, default=list)

    user = relationship("User", back_populates="financial_profile")


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    name = Column(String)
    target_amount = Column(Float)
    current_amount = Column(Float, default=0.0)
    deadline = Column(DateTime)
    status = Column(Enum(GoalStatus, native_enum=False), default=GoalStatus.ACTIVE)
    icon = Column(String, nullable=True)
    color = Column(String, nullable=True)
    category = Column(String, nullable=True)

# --- Init DB ---
def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
