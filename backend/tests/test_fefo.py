from datetime import date

import pytest

from pharmastock.services.fefo import get_best_batch_fefo, group_medicines_by_name, select_batches_fefo

TODAY = date(2024, 12, 1)


@pytest.fixture()
def panadol(make_record):
    return [
        make_record(1, 10, "2025-01-01"),
        make_record(2, 25, "2025-03-01"),
        make_record(3, 5, None),
    ]


def test_nearest_expiry_is_drawn_first(panadol) -> None:
    result = select_batches_fefo("Panadol", 30, panadol, today=TODAY)

    assert [(a.id, a.quantity, a.expiry_date) for a in result.allocations] == [
        (1, 10, date(2025, 1, 1)),
        (2, 20, date(2025, 3, 1)),
    ]
    assert result.total_available == 40
    assert result.allocated_quantity == 30
    assert result.shortfall == 0


def test_batch_without_expiry_is_used_last(panadol) -> None:
    result = select_batches_fefo("Panadol", 38, panadol, today=TODAY)

    assert [a.id for a in result.allocations] == [1, 2, 3]
    assert result.allocations[-1].quantity == 3
    assert result.allocations[-1].expiry_date is None


def test_shortfall_is_reported_not_raised(panadol) -> None:
    result = select_batches_fefo("Panadol", 100, panadol, today=TODAY)

    assert result.allocated_quantity == 40
    assert result.total_available == 40
    assert result.shortfall == 60


@pytest.mark.parametrize("required", [0, -5])
def test_non_positive_request_allocates_nothing(panadol, required: int) -> None:
    result = select_batches_fefo("Panadol", required, panadol, today=TODAY)

    assert result.allocations == []
    assert result.allocated_quantity == 0
    assert result.shortfall == 0
    assert result.total_available == 40


def test_expired_empty_and_other_medicines_are_skipped(make_record) -> None:
    batches = [
        make_record(1, 50, "2024-11-30"),  # expired yesterday
        make_record(2, 0, "2024-12-05"),  # empty
        make_record(3, 40, "2024-12-02", medicine_name="Brufen"),
        make_record(4, 7, "2024-12-01"),  # expires today, still sellable
        make_record(5, 9, "2025-02-01", medicine_name="PANADOL"),
    ]

    result = select_batches_fefo("panadol", 10, batches, today=TODAY)

    assert [(a.id, a.quantity) for a in result.allocations] == [(4, 7), (5, 3)]
    assert result.total_available == 16


def test_allocations_respect_limits_and_order(make_record) -> None:
    batches = [
        make_record(1, 4, "2025-05-01"),
        make_record(2, 6, None),
        make_record(3, 3, "2025-01-10"),
        make_record(4, 8, "2025-01-10"),
        make_record(5, 2, "2026-01-01"),
    ]
    by_id = {b.id: b for b in batches}

    for required in range(0, 30):
        result = select_batches_fefo("Panadol", required, batches, today=TODAY)
        assert result.allocated_quantity <= max(required, 0)
        for allocation in result.allocations:
            assert 0 < allocation.quantity <= by_id[allocation.id].quantity
        expiries = [a.expiry_date or date.max for a in result.allocations]
        assert expiries == sorted(expiries)


def test_equal_expiry_keeps_input_order(make_record) -> None:
    batches = [make_record(7, 5, "2025-01-10"), make_record(3, 5, "2025-01-10")]

    result = select_batches_fefo("Panadol", 6, batches, today=TODAY)

    assert [a.id for a in result.allocations] == [7, 3]


def test_best_batch_is_nearest_sellable_expiry(panadol, make_record) -> None:
    batches = panadol + [make_record(9, 3, "2024-11-01")]

    best = get_best_batch_fefo("PANADOL", batches, today=TODAY)

    assert best.id == 1


def test_best_batch_falls_back_to_non_expiring_stock(make_record) -> None:
    batches = [make_record(1, 10, "2024-06-01"), make_record(2, 4, None)]

    assert get_best_batch_fefo("Panadol", batches, today=TODAY).id == 2


def test_best_batch_none_when_nothing_sellable(make_record) -> None:
    batches = [make_record(1, 0, "2025-06-01"), make_record(2, 10, "2024-06-01")]

    assert get_best_batch_fefo("Panadol", batches, today=TODAY) is None
    assert get_best_batch_fefo("Brufen", [], today=TODAY) is None


def test_grouping_partitions_by_case_insensitive_name(make_record) -> None:
    batches = [
        make_record(1, 10, None, medicine_name="Panadol"),
        make_record(2, 0, "2025-02-01", medicine_name="panadol"),
        make_record(3, 5, "2023-01-01", medicine_name="Brufen"),
        make_record(4, 8, "2024-01-01", medicine_name="PANADOL"),
    ]

    groups = group_medicines_by_name(batches)

    assert set(groups) == {"panadol", "brufen"}
    # expired and empty batches stay, sorted by expiry with no-expiry last
    assert [b.id for b in groups["panadol"]] == [4, 2, 1]
    assert [b.id for b in groups["brufen"]] == [3]
    assert sorted(b.id for group in groups.values() for b in group) == [1, 2, 3, 4]


def test_grouping_empty_input() -> None:
    assert group_medicines_by_name([]) == {}
