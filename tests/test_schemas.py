import unittest
from datetime import datetime

from pydantic import ValidationError

from categories import PaymentMethod, TransactionCategory, TransactionType
from schemas import (
    PlannedPayment,
    ProfileRecord,
    TransactionRecord,
    UserRef,
    parse_benefits,
    parse_multiple_payments,
)


class TestMultiplePayments(unittest.TestCase):

    def test_missing_schedule(self):
        self.assertIsNone(parse_multiple_payments(None))

    def test_valid_schedule(self):
        payments = parse_multiple_payments(
            [{"label": "Salário", "day": 5, "value": 2400}, {"label": "Bônus", "day": 20, "value": 300.5}]
        )
        self.assertEqual([p.day for p in payments], [5, 20])
        self.assertTrue(payments[0].is_salary)
        self.assertFalse(payments[1].is_salary)

    def test_malformed_schedule_becomes_empty(self):
        for raw in ("not a list", [{"label": "Salário", "day": 40, "value": 10}], [{"day": 5}]):
            with self.subTest(raw=raw):
                with self.assertLogs("schemas", level="WARNING"):
                    self.assertEqual(parse_multiple_payments(raw, user_id=7), [])

    def test_salary_label_without_accent(self):
        self.assertTrue(PlannedPayment(label="SALARIO quinzena", day=15, value=1).is_salary)


class TestBenefits(unittest.TestCase):

    def test_drops_malformed_entries(self):
        raw = [
            {"type": "VR", "value": 800.0, "category": "FOOD"},
            {"type": "GYMPASS", "value": 100.0},
            {"type": "VT", "value": -5},
            {"type": "VA", "value": 450, "notes": "cartão"},
        ]
        with self.assertLogs("schemas", level="WARNING") as logs:
            benefits = parse_benefits(raw, user_id=3)
        self.assertEqual([b.type for b in benefits], ["VR", "VA"])
        self.assertEqual(len(logs.records), 2)

    def test_not_a_list(self):
        with self.assertLogs("schemas", level="WARNING"):
            self.assertEqual(parse_benefits({"type": "VR", "value": 1}), [])

    def test_empty(self):
        self.assertEqual(parse_benefits(None), [])
        self.assertEqual(parse_benefits([]), [])


class TestRecords(unittest.TestCase):

    def test_transaction_defaults(self):
        created = datetime(2026, 9, 1, 8, 0)
        t = TransactionRecord(
            id=1, user_id=1, name="Mercado", type="EXPENSE", category="FOOD", amount=10.0, created_at=created
        )
        self.assertEqual(t.type, TransactionType.EXPENSE)
        self.assertEqual(t.category, TransactionCategory.FOOD)
        self.assertEqual(t.payment_method, PaymentMethod.OTHER)
        self.assertEqual(t.effective_date, created)

    def test_records_are_frozen(self):
        t = TransactionRecord(
            id=1, user_id=1, name="Mercado", type="EXPENSE", category="FOOD", amount=10.0,
            created_at=datetime(2026, 9, 1),
        )
        with self.assertRaises(ValidationError):
            t.amount = 20.0

    def test_profile_payment_day_range(self):
        with self.assertRaises(ValidationError):
            ProfileRecord(user_id=1, dia_pagamento=32)

    def test_display_name(self):
        self.assertEqual(UserRef(id=1, name="Ana", email="ana@x.com").display_name, "Ana")
        self.assertEqual(UserRef(id=1, email="ana@x.com").display_name, "ana@x.com")
        self.assertEqual(UserRef(id=1).display_name, "Usuário")


if __name__ == "__main__":
    unittest.main()
