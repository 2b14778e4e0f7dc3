"""
Test suite for the account data model

Tests balance credit/debit rules and debt queue behaviour.
"""

import pytest
from decimal import Decimal

from atm_ledger.models import Account, Debt


class TestDebt:
    """Test Debt record"""

    def test_debt_requires_positive_amount(self):
        """Test zero and negative debts cannot be created"""
        with pytest.raises(ValueError, match="Debt amount must be positive"):
            Debt(creditor="Bob", amount=Decimal('0'))
        with pytest.raises(ValueError):
            Debt(creditor="Bob", amount=Decimal('-1'))

    def test_apply_payment(self):
        """Test partial and full payments"""
        debt = Debt(creditor="Bob", amount=Decimal('5'))

        debt.apply_payment(Decimal('2'))
        assert debt.amount == Decimal('3')
        assert not debt.is_settled

        debt.apply_payment(Decimal('3'))
        assert debt.is_settled

    def test_overpayment_rejected(self):
        """Test a payment larger than the debt"""
        debt = Debt(creditor="Bob", amount=Decimal('5'))

        with pytest.raises(ValueError):
            debt.apply_payment(Decimal('6'))
        assert debt.amount == Decimal('5')


class TestAccount:
    """Test Account balance and debt queue"""

    def test_new_account_defaults(self):
        """Test zero balance and empty queue"""
        account = Account(name="Alice")

        assert account.balance == Decimal('0')
        assert account.debts == []
        assert not account.has_debts

    def test_debit_insufficient_funds_leaves_balance(self):
        """Test debit returns False without changing balance"""
        account = Account(name="Alice")
        account.credit(Decimal('50'))

        assert not account.debit(Decimal('60'))
        assert account.balance == Decimal('50')
        assert account.debit(Decimal('50'))
        assert account.balance == Decimal('0')

    def test_balance_and_debt_arithmetic_is_exact(self):
        """Test amounts wider than 28 digits are not rounded"""
        account = Account(name="Alice")
        account.credit(Decimal('1000000000000000000000000000'))
        account.credit(Decimal('0.5'))

        assert account.balance == Decimal('1000000000000000000000000000.5')
        assert account.debit(Decimal('0.25'))
        assert account.balance == Decimal('1000000000000000000000000000.25')

        debt = account.add_debt("Bob", Decimal('1000000000000000000000000000.01'))
        debt.apply_payment(Decimal('1000000000000000000000000000'))
        assert debt.amount == Decimal('0.01')

    def test_negative_movements_rejected(self):
        """Test balance can never be pushed negative via credit/debit"""
        account = Account(name="Alice")

        with pytest.raises(ValueError):
            account.credit(Decimal('-1'))
        with pytest.raises(ValueError):
            account.debit(Decimal('-1'))

    def test_add_debt_appends_without_merging(self):
        """Test debts to the same creditor stay separate"""
        account = Account(name="Alice")
        first = account.add_debt("Bob", Decimal('3'))
        second = account.add_debt("Bob", Decimal('4'))

        assert account.debts == [first, second]
        assert account.total_owed_to("Bob") == Decimal('7')
        assert account.total_owed_to("Carol") == Decimal('0')

    def test_find_debt_to_returns_oldest(self):
        """Test lookup finds the first matching entry"""
        account = Account(name="Alice")
        account.add_debt("Carol", Decimal('1'))
        oldest = account.add_debt("Bob", Decimal('3'))
        account.add_debt("Bob", Decimal('4'))

        assert account.find_debt_to("Bob") is oldest
        assert account.find_debt_to("Dave") is None

    def test_remove_debt_by_identity(self):
        """Test removal picks the exact entry even when another is equal"""
        account = Account(name="Alice")
        first = account.add_debt("Bob", Decimal('3'))
        second = account.add_debt("Bob", Decimal('3'))

        account.remove_debt(second)

        assert len(account.debts) == 1
        assert account.debts[0] is first

    def test_remove_unknown_debt(self):
        """Test removing a debt that is not queued"""
        account = Account(name="Alice")

        with pytest.raises(ValueError):
            account.remove_debt(Debt(creditor="Bob", amount=Decimal('1')))
