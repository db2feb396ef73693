from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

from catalogix.adapters.sqlalchemy.repositories import (
    SqlAlchemyAttributeDefinitionRepository,
    SqlAlchemyAttributeValueRepository,
    SqlAlchemyCatalogEntryRepository,
    SqlAlchemyEntityLinkRepository,
    SqlAlchemyInboxRepository,
    SqlAlchemySourceValueRepository,
)
from catalogix.domain.model import (
    AttributeDefinition,
    AttributeValue,
    BooleanValue,
    CatalogEntry,
    EntityLink,
    EntrySnapshot,
    InboxItem,
    LocalizedText,
    MostRecent,
    OptionValue,
    RecomputeStatus,
    SourceValue,
    Supplier,
    SupplierEntity,
    ValueType,
)
from catalogix.domain.readiness import ReadinessInput, evaluate_readiness
from tests.helpers.catalog import BASE_TIME, number

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def test_next_sku_skips_foreign_patterns(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogEntryRepository(sqlite_session)
    for sku in ("SKU00000007", "SKU-custom", "OTHER00000099"):
        repo.add(CatalogEntry(sku=sku))
    sqlite_session.commit()

    assert repo.next_sku("SKU") == "SKU00000008"
    assert repo.next_sku("NEW") == "NEW00000001"


def test_match_candidates_use_operator_and_resolved_codes(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogEntryRepository(sqlite_session)
    by_operator = CatalogEntry(sku="A", barcode="111")
    by_resolved = CatalogEntry(sku="B", resolved_barcode="111")
    by_brand = CatalogEntry(sku="C", resolved_brand="Bosch")
    unrelated = CatalogEntry(sku="D", barcode="222", brand="Makita")
    for entry in (by_operator, by_resolved, by_brand, unrelated):
        repo.add(entry)
    sqlite_session.commit()

    found = repo.find_match_candidates(barcode="111", vendor_code=None, brand=" BOSCH ")

    assert [entry.sku for entry in found] == ["A", "B", "C"]
    assert repo.find_match_candidates(barcode=None, vendor_code=None, brand=None) == []


def test_match_candidates_include_linked_supplier_codes(sqlite_session: Session) -> None:
    entries = SqlAlchemyCatalogEntryRepository(sqlite_session)
    seeded = CatalogEntry(sku="A")
    entries.add(seeded)
    supplier = Supplier(code="master", name="Master")
    sqlite_session.add(supplier)
    entity = SupplierEntity(
        supplier_id=supplier.id,
        external_id="M-1",
        barcode="4820000000011",
        vendor_code="GSR-120",
    )
    sqlite_session.add(entity)
    SqlAlchemyEntityLinkRepository(sqlite_session).add(
        EntityLink(catalog_entry_id=seeded.id, supplier_entity_id=entity.id, is_primary=True)
    )
    sqlite_session.commit()

    by_barcode = entries.find_match_candidates(barcode="4820000000011", vendor_code=None, brand=None)
    by_vendor_code = entries.find_match_candidates(barcode=None, vendor_code="GSR-120", brand=None)

    assert [entry.sku for entry in by_barcode] == ["A"]
    assert [entry.sku for entry in by_vendor_code] == ["A"]
    assert entries.find_match_candidates(barcode="4820000000028", vendor_code=None, brand=None) == []


def test_match_candidates_fold_cyrillic_brands(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogEntryRepository(sqlite_session)
    repo.add(CatalogEntry(sku="A", brand="ДНІПРО-М"))
    repo.add(CatalogEntry(sku="B", resolved_brand="Дніпро-М"))
    repo.add(CatalogEntry(sku="C", brand="Інтерскол"))
    sqlite_session.commit()

    found = repo.find_match_candidates(barcode=None, vendor_code=None, brand="дніпро-м")

    assert [entry.sku for entry in found] == ["A", "B"]


def test_entries_filter_by_status(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogEntryRepository(sqlite_session)
    fresh = CatalogEntry(sku="A")
    fresh.publish(EntrySnapshot(), computed_at=BASE_TIME)
    fresh.mark_fresh()
    failed = CatalogEntry(sku="B")
    failed.mark_failed("boom")
    pending = CatalogEntry(sku="C")
    for entry in (fresh, failed, pending):
        repo.add(entry)
    sqlite_session.commit()

    stale = repo.list_by_status((RecomputeStatus.PENDING, RecomputeStatus.FAILED))

    assert [entry.sku for entry in stale] == ["B", "C"]


def test_published_snapshot_round_trips(sqlite_session: Session) -> None:
    repo = SqlAlchemyCatalogEntryRepository(sqlite_session)
    verdict = evaluate_readiness(
        ReadinessInput(
            category_id=None,
            min_retail_price=Decimal("99.90"),
            min_purchase_price=None,
            names=LocalizedText(uk="Дриль", ru="Дрель"),
            brand="Bosch",
            total_stock=0,
            media=(),
            barcode=None,
            vendor_code="GSR-120",
        )
    )
    snapshot = EntrySnapshot(
        display_names=LocalizedText(uk="Дриль", ru="Дрель"),
        brand="Bosch",
        vendor_code="GSR-120",
        min_retail_price=Decimal("99.90"),
        max_retail_price=Decimal("120.00"),
        verdict=verdict,
        quality_score=44,
    )
    entry = CatalogEntry(sku="A")
    entry.publish(snapshot, computed_at=BASE_TIME)
    repo.add(entry)
    entry_id = entry.id
    sqlite_session.commit()
    sqlite_session.expunge_all()

    stored = repo.get(entry_id)

    assert stored is not None
    assert stored.snapshot == snapshot
    assert stored.computed_at == BASE_TIME
    assert stored.verdict is not None
    assert stored.verdict.blocking_codes == ("no_category", "no_purchase_price")
    assert stored.verdict.warning_codes == ("no_stock", "no_media", "no_barcode")


def test_typed_values_and_rules_round_trip(sqlite_session: Session) -> None:
    definitions = SqlAlchemyAttributeDefinitionRepository(sqlite_session)
    values = SqlAlchemyAttributeValueRepository(sqlite_session)
    weight = AttributeDefinition(
        key="manual:weight",
        code="weight",
        value_type=ValueType.NUMBER,
        default_unit="кг",
        preferred_source=MostRecent(),
    )
    definitions.add(weight)
    entry_id = uuid4()
    typed = [number("1.50", "кг"), BooleanValue(flag=True), OptionValue(option="red"), None]
    for index, value in enumerate(typed):
        values.add(
            AttributeValue(
                catalog_entry_id=entry_id,
                attribute_id=weight.id,
                supplier_id=uuid4(),
                supplier_entity_id=uuid4(),
                raw_value=f"raw {index}",
                value=value,
                observed_at=BASE_TIME,
                created_at=BASE_TIME,
            )
        )
    sqlite_session.commit()
    sqlite_session.expunge_all()

    stored = {row.raw_value: row.value for row in values.list_for_entry(entry_id)}
    stored_definition = definitions.get_by_key("manual:weight")

    assert stored == {f"raw {index}": value for index, value in enumerate(typed)}
    assert stored_definition is not None
    assert stored_definition.preferred_source == MostRecent()
    assert stored_definition.value_type is ValueType.NUMBER


def test_conflicting_rows_are_listed_by_count(sqlite_session: Session) -> None:
    values = SqlAlchemyAttributeValueRepository(sqlite_session)
    attribute_id = uuid4()
    rows = [
        AttributeValue(
            catalog_entry_id=uuid4(),
            attribute_id=attribute_id,
            raw_value=str(count),
            is_active=active,
            has_conflict=True,
            conflict_count=count,
        )
        for count, active in ((1, True), (3, True), (2, False))
    ]
    for row in rows:
        values.add(row)
    sqlite_session.commit()

    listed = values.list_conflicting()

    assert [row.conflict_count for row in listed] == [3, 1]
    assert [row.conflict_count for row in values.list_conflicting(limit=1)] == [3]


def test_unmapped_values_are_scoped_by_supplier(sqlite_session: Session) -> None:
    repo = SqlAlchemySourceValueRepository(sqlite_session)
    acme, other = uuid4(), uuid4()
    for supplier_id in (acme, other):
        repo.add(
            SourceValue(
                supplier_entity_id=uuid4(),
                supplier_id=supplier_id,
                label="Колір",
                normalized_label="колір",
                raw_value="червоний",
            )
        )
    sqlite_session.commit()

    assert len(repo.list_unmapped("колір", acme)) == 1
    assert len(repo.list_unmapped("колір", None)) == 2
    assert repo.list_unmapped("вага", None) == []


def test_inbox_lookup_distinguishes_global_items(sqlite_session: Session) -> None:
    repo = SqlAlchemyInboxRepository(sqlite_session)
    supplier_id = uuid4()
    scoped = InboxItem(label="Колір", normalized_label="колір", supplier_id=supplier_id)
    unscoped = InboxItem(label="Колір", normalized_label="колір")
    repo.add(scoped)
    repo.add(unscoped)
    sqlite_session.commit()

    assert repo.find(supplier_id, "колір") is scoped
    assert repo.find(None, "колір") is unscoped
