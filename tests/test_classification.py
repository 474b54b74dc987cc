import itertools
import unittest
from datetime import datetime, timedelta

from categories import TransactionCategory, TransactionType
from classification import (
    Classification,
    RecurrenceIndex,
    classify_transaction,
    is_benefit_name,
    is_recurring,
)
from factories import DEPOSIT, EXPENSE, INVESTMENT, expense, salary, txn


class TestClassifier(unittest.TestCase):

    def test_salary_deposit(self):
        c = classify_transaction(DEPOSIT, TransactionCategory.SALARY, "Salário")
        self.assertEqual(c, Classification(is_salary=True))
        self.assertEqual(c.bucket, "salary")

    def test_salary_category_wins_over_benefit_name(self):
        c = classify_transaction(DEPOSIT, TransactionCategory.SALARY, "Salário + VR")
        self.assertTrue(c.is_salary)
        self.assertFalse(c.is_benefit)

    def test_benefit_deposit(self):
        for name in ("VR Alelo", "Vale Refeição", "Benefício flex", "Auxílio home office", "ticket"):
            with self.subTest(name=name):
                c = classify_transaction(DEPOSIT, TransactionCategory.FOOD, name)
                self.assertEqual(c.bucket, "benefit")

    def test_other_deposit_is_variable_income(self):
        c = classify_transaction(DEPOSIT, TransactionCategory.OTHER, "Freela site")
        self.assertEqual(c.bucket, "variable_income")

    def test_recurring_deposit_is_still_variable_income(self):
        c = classify_transaction(DEPOSIT, TransactionCategory.OTHER, "Aluguel recebido", is_recurring=True)
        self.assertEqual(c.bucket, "variable_income")

    def test_expense_buckets(self):
        self.assertEqual(classify_transaction(EXPENSE, TransactionCategory.FOOD, "Mercado").bucket, "variable_expense")
        self.assertEqual(
            classify_transaction(EXPENSE, TransactionCategory.ENTERTAINMENT, "Netflix", is_subscription=True).bucket,
            "fixed_expense",
        )
        self.assertEqual(
            classify_transaction(EXPENSE, TransactionCategory.HOUSING, "Aluguel", is_recurring=True).bucket,
            "fixed_expense",
        )

    def test_investment(self):
        c = classify_transaction(INVESTMENT, TransactionCategory.OTHER, "Tesouro Selic", is_recurring=True)
        self.assertEqual(c, Classification(is_investment=True))

    def test_accepts_raw_strings(self):
        c = classify_transaction("EXPENSE", "FOOD", "Padaria")
        self.assertTrue(c.is_variable_expense)

    def test_keyword_arguments(self):
        c = classify_transaction(type_=INVESTMENT, category=TransactionCategory.OTHER, name="CDB")
        self.assertTrue(c.is_investment)

    def test_every_input_gets_exactly_one_bucket(self):
        names = ["Salário", "VR", "Mercado", ""]
        for type_, category, name, recurring, subscription in itertools.product(
            TransactionType, TransactionCategory, names, (False, True), (False, True)
        ):
            c = classify_transaction(type_, category, name, is_recurring=recurring, is_subscription=subscription)
            flags = [c.is_salary, c.is_benefit, c.is_variable_income, c.is_fixed_expense, c.is_variable_expense, c.is_investment]
            self.assertEqual(sum(flags), 1, (type_, category, name, recurring, subscription))

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(ValueError):
            classify_transaction("TRANSFER", TransactionCategory.OTHER, "Pix")

    def test_benefit_pattern_needs_whole_words(self):
        self.assertTrue(is_benefit_name("Crédito VA"))
        self.assertFalse(is_benefit_name("Vendas online"))
        self.assertFalse(is_benefit_name("Valeria transferência"))
        self.assertFalse(is_benefit_name(None))


class TestRecurrence(unittest.TestCase):

    def setUp(self):
        self.july = datetime(2026, 7, 3, 9, 0)
        self.august = datetime(2026, 8, 3, 9, 0)
        self.september = datetime(2026, 9, 3, 9, 0)

    def _netflix(self, when, amount=39.90):
        return expense("Netflix", amount, when, category=TransactionCategory.ENTERTAINMENT)

    def test_third_monthly_charge_is_recurring(self):
        history = [self._netflix(self.july), self._netflix(self.august), self._netflix(self.september)]
        self.assertFalse(is_recurring(history[0], history))
        self.assertFalse(is_recurring(history[1], history))
        self.assertTrue(is_recurring(history[2], history))

    def test_name_match_ignores_case(self):
        history = [self._netflix(self.july), self._netflix(self.august)]
        candidate = expense("NETFLIX", 55.90, self.september, category=TransactionCategory.ENTERTAINMENT)
        self.assertTrue(is_recurring(candidate, history + [candidate]))

    def test_never_matches_itself(self):
        candidate = self._netflix(self.september)
        self.assertFalse(is_recurring(candidate, [candidate, candidate]))

    def test_ignores_later_and_same_time_rows(self):
        candidate = self._netflix(self.july)
        later = [self._netflix(self.august), self._netflix(self.september)]
        same_time = [self._netflix(self.july), self._netflix(self.july)]
        self.assertFalse(is_recurring(candidate, [candidate] + later))
        self.assertFalse(is_recurring(candidate, [candidate] + same_time))

    def test_similar_amount_and_shared_word(self):
        history = [
            expense("Uber centro", 22.0, self.july, category=TransactionCategory.TRANSPORTATION),
            expense("Uber trabalho", 24.0, self.august, category=TransactionCategory.TRANSPORTATION),
        ]
        candidate = expense("Uber viagem", 25.0, self.september, category=TransactionCategory.TRANSPORTATION)
        self.assertTrue(is_recurring(candidate, history))

    def test_amount_outside_tolerance(self):
        # |20 - 25| / 25 == 0.2 is not strictly below the tolerance
        history = [
            expense("Uber centro", 20.0, self.july, category=TransactionCategory.TRANSPORTATION),
            expense("Uber centro", 20.0, self.august, category=TransactionCategory.TRANSPORTATION),
        ]
        candidate = expense("Uber viagem", 25.0, self.september, category=TransactionCategory.TRANSPORTATION)
        self.assertFalse(is_recurring(candidate, history))

    def test_requires_same_category(self):
        history = [
            expense("Netflix", 39.90, self.july, category=TransactionCategory.OTHER),
            expense("Netflix", 39.90, self.august, category=TransactionCategory.OTHER),
        ]
        self.assertFalse(is_recurring(self._netflix(self.september), history))

    def test_close_amount_without_common_word(self):
        history = [
            expense("Padaria", 30.0, self.july, category=TransactionCategory.FOOD),
            expense("Açougue", 31.0, self.august, category=TransactionCategory.FOOD),
        ]
        candidate = expense("Mercado", 30.5, self.september, category=TransactionCategory.FOOD)
        self.assertFalse(is_recurring(candidate, history))

    def test_index_matches_helper(self):
        rows = [self._netflix(self.july + timedelta(days=30 * i)) for i in range(4)]
        rows.append(salary(5000.0, self.september))
        index = RecurrenceIndex(rows)
        for row in rows:
            self.assertEqual(index.is_recurring(row), is_recurring(row, rows))
        self.assertEqual(len(index.similar_before(rows[3])), 3)

    def test_effective_date_falls_back_to_created_at(self):
        undated = [
            txn("Academia", EXPENSE, TransactionCategory.HEALTH, 99.0, when, date=None)
            for when in (self.july, self.august)
        ]
        candidate = txn("Academia", EXPENSE, TransactionCategory.HEALTH, 99.0, self.september, date=None)
        self.assertTrue(is_recurring(candidate, undated))


if __name__ == "__main__":
    unittest.main()
