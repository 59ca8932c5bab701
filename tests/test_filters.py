from class_finance.filters import TransactionFilter, build_filter, filter_transactions
from fakes import make_payment, make_txn


def _transactions():
    return [
        make_txn(id="1", name="Lunch money", kind="income", method="cash"),
        make_txn(id="2", name="Markers", kind="expense", method="kplus"),
        make_payment("3", "A", 100, method="kplus"),
        make_txn(id="4", name="LUNCH refund", kind="expense", method="cash"),
    ]


def test_filter_is_conjunctive_and_keeps_order():
    result = filter_transactions(_transactions(), kind="expense", method="cash")
    assert [t.id for t in result] == ["4"]
    result = filter_transactions(_transactions(), method="kplus")
    assert [t.id for t in result] == ["2", "3"]


def test_search_is_case_insensitive_on_name_only():
    result = filter_transactions(_transactions(), search="lunch")
    assert [t.id for t in result] == ["1", "4"]
    assert filter_transactions(_transactions(), search="cash") == []


def test_empty_criteria_match_everything():
    txns = _transactions()
    assert filter_transactions(txns) == txns
    assert filter_transactions(txns, source="", search="") == txns


def test_filtering_twice_changes_nothing():
    txns = _transactions()
    once = filter_transactions(txns, source="transaction", search="l")
    assert filter_transactions(once, source="transaction", search="l") == once


def test_build_filter_skips_blank_values_and_aliases_bank():
    criteria = build_filter({"source": " ", "method": "bank", "search": None})
    assert criteria == TransactionFilter(method="bank")
    assert criteria.matches(make_txn(method="kplus")) is True
    assert build_filter(None) == TransactionFilter()
