import pytest

from claimdesk.depreciation import compute_line_item, straight_line_depreciation, summarize_payout
from claimdesk.errors import InvalidArgument


def test_straight_line_is_capped_at_full_rcv():
    assert straight_line_depreciation(10000, 5, 20) == 2500
    assert straight_line_depreciation(10000, 30, 20) == 10000


def test_compute_line_item_rounds_to_cents():
    assert compute_line_item(1000.0, 1, 3) == (333.33, 666.67)


@pytest.mark.parametrize("rcv,age,life", [(100, 1, 0), (100, 1, -5), (-1, 1, 10), (100, -1, 10)])
def test_invalid_inputs_raise(rcv, age, life):
    with pytest.raises(InvalidArgument):
        straight_line_depreciation(rcv, age, life)


def test_summary_counts_only_completed_items():
    items = [
        {"rcv": 10000, "depreciation": 3000, "acv": 7000, "completed": True, "recoverable": True},
        {"rcv": 2000, "depreciation": 500, "acv": 1500, "completed": True, "recoverable": False},
        {"rcv": 5000, "depreciation": 1000, "acv": 4000, "completed": False, "recoverable": True},
    ]
    supplements = [
        {"amount": 450.0, "status": "approved"},
        {"amount": 900.0, "status": "denied"},
    ]
    s = summarize_payout(items, supplements, deductible=1500, acv_paid=7500)
    assert s.total_rcv == 12000
    assert s.total_acv == 8500
    assert s.total_depreciation == 3500
    assert s.recoverable_depreciation == 3000
    assert s.approved_supplements == 450
    assert s.total_due == 3450
    assert s.acv_paid == 7500
    assert s.deductible == 1500
    assert s.depreciation_percent == 29.2
    assert (s.item_count, s.completed_count) == (3, 2)


def test_summary_defaults():
    s = summarize_payout([])
    assert s.deductible == 1000
    assert s.total_due == 0
    assert s.depreciation_percent == 0
    assert s.acv_paid == 0
