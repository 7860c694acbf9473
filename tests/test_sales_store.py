from __future__ import annotations

from datetime import date

import pytest

from remedy_tracker.errors import NotFoundError, ValidationError
from remedy_tracker.store.records import SaleQuery


def test_create_sale_fills_defaults_and_first_history_entry(make_sale, member):
    sale = make_sale(optional_charges=15.5)

    assert sale.whatsapp_number == sale.phone_number
    assert sale.price == 120.0
    assert sale.total_amount == pytest.approx(135.5)
    assert sale.dosage_end_date == date(2024, 6, 12)
    assert sale.team_member_id == member.uid
    assert sale.team_member_name == member.name
    assert sale.last_reminder_sent is None
    assert [h.seq for h in sale.history] == [1]
    assert sale.history[0].dosage_end_date == date(2024, 6, 12)


def test_create_sale_rejects_bad_input(make_sale):
    with pytest.raises(ValidationError):
        make_sale(patient_name="  ")
    with pytest.raises(ValidationError):
        make_sale(duration=0)


def test_reorder_appends_exactly_one_entry(sales_store, make_sale, admin):
    sale = make_sale()
    before = sales_store.get_sale(sale.id).history

    updated = sales_store.reorder(sale.id, purchase_date=date(2024, 6, 12), duration=3, updated_by=admin.name)

    assert len(updated.history) == len(before) + 1
    assert updated.history[: len(before)] == before
    assert updated.history[-1].seq == 2
    assert updated.history[-1].updated_by == admin.name
    assert updated.purchase_date == date(2024, 6, 12)
    assert updated.duration == 3
    assert updated.dosage_end_date == date(2024, 9, 12)


def test_entry_and_reorder_agree_on_month_end(sales_store, make_sale, admin):
    created = make_sale(purchase_date=date(2024, 1, 31), duration=1)
    other = make_sale(patient_name="Other", purchase_date=date(2023, 12, 1))

    reordered = sales_store.reorder(other.id, purchase_date=date(2024, 1, 31), duration=1, updated_by=admin.name)

    assert created.dosage_end_date == date(2024, 2, 29)
    assert reordered.dosage_end_date == date(2024, 2, 29)


def test_out_of_range_terms_are_validation_errors(sales_store, make_sale, admin):
    sale = make_sale()

    with pytest.raises(ValidationError):
        make_sale(duration=100000)
    with pytest.raises(ValidationError, match="out of range"):
        make_sale(purchase_date=date(9999, 12, 15))
    with pytest.raises(ValidationError):
        sales_store.reorder(sale.id, purchase_date=date(2024, 6, 12), duration=100000, updated_by=admin.name)
    with pytest.raises(ValidationError):
        sales_store.reorder(sale.id, purchase_date=date(9999, 12, 15), duration=1, updated_by=admin.name)

    assert [h.seq for h in sales_store.get_sale(sale.id).history] == [1]


def test_reorder_unknown_sale(sales_store):
    with pytest.raises(NotFoundError):
        sales_store.reorder("missing", purchase_date=date(2024, 1, 1), duration=1, updated_by="x")


def test_list_sales_scoped_by_team_member(sales_store, make_sale, admin, member):
    mine = make_sale(actor=member)
    theirs = make_sale(patient_name="Admin Patient", actor=admin)

    assert {s.id for s in sales_store.list_sales(SaleQuery.for_user(member))} == {mine.id}
    assert {s.id for s in sales_store.list_sales(SaleQuery.for_user(admin))} == {mine.id, theirs.id}


def test_delete_sale_removes_history(sales_store, make_sale, admin):
    sale = make_sale()
    sales_store.reorder(sale.id, purchase_date=date(2024, 6, 12), duration=1, updated_by=admin.name)

    sales_store.delete_sale(sale.id)

    with pytest.raises(NotFoundError):
        sales_store.get_sale(sale.id)
    with pytest.raises(NotFoundError):
        sales_store.delete_sale(sale.id)


def test_claim_and_release(sales_store, make_sale):
    sale = make_sale()

    claim = sales_store.claim_reminder_day(sale.id, day_iso="2024-06-10")
    assert claim is not None
    assert claim.previous_stamp is None
    assert sales_store.claim_reminder_day(sale.id, day_iso="2024-06-10") is None

    assert sales_store.release_reminder_day(claim) is True
    assert sales_store.get_sale(sale.id).last_reminder_sent is None
    assert sales_store.claim_reminder_day("missing", day_iso="2024-06-10") is None


def test_release_does_not_clobber_a_newer_stamp(sales_store, make_sale):
    sale = make_sale()
    claim = sales_store.claim_reminder_day(sale.id, day_iso="2024-06-10")
    sales_store.claim_reminder_day(sale.id, day_iso="2024-06-11")

    assert sales_store.release_reminder_day(claim) is False
    assert sales_store.get_sale(sale.id).last_reminder_sent == "2024-06-11"


def test_subscription_receives_snapshots_after_writes(sales_store, make_sale, member, admin):
    snapshots = []
    unsubscribe = sales_store.subscribe(SaleQuery(team_member_id=member.uid), snapshots.append)
    assert snapshots == [[]]

    sale = make_sale(actor=member)
    assert [s.id for s in snapshots[-1]] == [sale.id]

    make_sale(patient_name="Not mine", actor=admin)
    assert [s.id for s in snapshots[-1]] == [sale.id]

    unsubscribe()
    unsubscribe()
    count = len(snapshots)
    sales_store.delete_sale(sale.id)
    assert len(snapshots) == count


def test_claim_does_not_publish(sales_store, make_sale):
    sale = make_sale()
    snapshots = []
    sales_store.subscribe(SaleQuery(), snapshots.append, emit_initial=False)

    sales_store.claim_reminder_day(sale.id, day_iso="2024-06-10")

    assert snapshots == []


def test_failing_subscriber_does_not_break_writes(sales_store, make_sale):
    def _boom(snapshot):
        raise RuntimeError("subscriber failed")

    sales_store.subscribe(SaleQuery(), _boom, emit_initial=False)
    sale = make_sale()
    assert sales_store.get_sale(sale.id).id == sale.id
