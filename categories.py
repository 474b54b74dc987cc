"""Enumerations and display constants shared by the models and the engine."""

from enum import Enum


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    EXPENSE = "EXPENSE"
    INVESTMENT = "INVESTMENT"


class TransactionCategory(str, Enum):
    HOUSING = "HOUSING"
    TRANSPORTATION = "TRANSPORTATION"
    FOOD = "FOOD"
    ENTERTAINMENT = "ENTERTAINMENT"
    HEALTH = "HEALTH"
    UTILITY = "UTILITY"
    SALARY = "SALARY"
    EDUCATION = "EDUCATION"
    OTHER = "OTHER"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    BANK_SLIP = "BANK_SLIP"
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BENEFIT = "BENEFIT"
    PIX = "PIX"
    OTHER = "OTHER"


class GoalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"


CATEGORY_LABELS = {
    "EDUCATION": "Educação",
    "ENTERTAINMENT": "Entretenimento",
    "FOOD": "Alimentação",
    "HEALTH": "Saúde",
    "HOUSING": "Moradia",
    "OTHER": "Outros",
    "SALARY": "Salário",
    "TRANSPORTATION": "Transporte",
    "UTILITY": "Utilidades",
}

CATEGORY_EMOJIS = {
    "EDUCATION": "🎓",
    "ENTERTAINMENT": "🎬",
    "FOOD": "🍔",
    "HEALTH": "🏥",
    "HOUSING": "🏠",
    "OTHER": "🛒",
    "SALARY": "💰",
    "TRANSPORTATION": "🚗",
    "UTILITY": "⚡",
}

CATEGORY_COLORS = {
    "EDUCATION": "#8b5cf6",
    "ENTERTAINMENT": "#ec4899",
    "FOOD": "#f97316",
    "HEALTH": "#ef4444",
    "HOUSING": "#14b8a6",
    "OTHER": "#6b7280",
    "SALARY": "#22c55e",
    "TRANSPORTATION": "#eab308",
    "UTILITY": "#0ea5e9",
}

DEFAULT_EMOJI = "📊"
DEFAULT_COLOR = "#3b82f6"


def category_label(key: str) -> str:
    return CATEGORY_LABELS.get(key, key)
