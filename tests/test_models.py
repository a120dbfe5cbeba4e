"""Unit tests for investment record parsing and status handling."""

import unittest

from investdash.domain.models import Investment, InvestmentStatus
from investdash.domain.parsing import categorize_investments, normalize_ticker


class TestInvestmentFromDict(unittest.TestCase):
    """Test parsing of data-service payloads."""

    def test_camel_case_payload(self):
        inv = Investment.from_dict({
            "id": "a1",
            "portfolioId": 7,
            "ticker": "AAPL",
            "type": "Equity",
            "currency": "USD",
            "amount": "10",
            "purchasePrice": 150.5,
            "currentValue": None,
            "sellPrice": None,
            "status": "ACTIVE ",
            "totalCost": "1505",
        })
        self.assertEqual(inv.portfolio_id, 7)
        self.assertEqual(inv.amount, 10.0)
        self.assertEqual(inv.purchase_price, 150.5)
        self.assertIsNone(inv.current_value)
        self.assertEqual(inv.status, InvestmentStatus.ACTIVE)
        self.assertEqual(inv.total_cost, 1505.0)

    def test_snake_case_and_nested_portfolio(self):
        inv = Investment.from_dict({
            "ticker": "btc",
            "purchase_price": 1,
            "sell_price": 2,
            "status": "sold",
            "portfolio": {"id": 3, "name": "Crypto"},
        })
        self.assertEqual(inv.portfolio_id, 3)
        self.assertEqual(inv.sell_price, 2.0)
        self.assertEqual(inv.status, InvestmentStatus.SOLD)

    def test_missing_status_defaults_to_active(self):
        inv = Investment.from_dict({"ticker": "X"})
        self.assertEqual(inv.status, InvestmentStatus.ACTIVE)

    def test_unparseable_number_is_none(self):
        inv = Investment.from_dict({"ticker": "X", "amount": "lots"})
        self.assertIsNone(inv.amount)

    def test_unknown_status_raises(self):
        with self.assertRaises(ValueError):
            Investment.from_dict({"ticker": "X", "status": "PENDING"})

    def test_to_dict_round_keys(self):
        inv = Investment.from_dict({"id": 1, "portfolioId": 2, "ticker": "X", "status": "SOLD"})
        payload = inv.to_dict()
        self.assertEqual(payload["portfolioId"], 2)
        self.assertEqual(payload["status"], "SOLD")


class TestParsing(unittest.TestCase):

    def test_normalize_ticker(self):
        self.assertEqual(normalize_ticker("  brk.b "), "BRK.B")
        self.assertIsNone(normalize_ticker(""))
        self.assertIsNone(normalize_ticker("   "))
        self.assertIsNone(normalize_ticker(None))

    def test_categorize(self):
        lots = [
            Investment(id=1, portfolio_id=1, ticker="A", status=InvestmentStatus.ACTIVE),
            Investment(id=2, portfolio_id=1, ticker="B", status=InvestmentStatus.SOLD),
            Investment(id=3, portfolio_id=1, ticker="C", status=InvestmentStatus.DELETED),
            Investment(id=4, portfolio_id=1, ticker="D", status=" sold "),
        ]
        result = categorize_investments(lots)
        self.assertEqual([i.id for i in result.active], [1])
        self.assertEqual([i.id for i in result.sold], [2, 4])


if __name__ == "__main__":
    unittest.main()
