# Overview: Coverage for unit identity keys, registration, revisions, status and unitization.

"""
Unit Identity Registry Tests

- Identity keys are normalized and globally unique
- Tags are allocated from per-kind counters (SS-M-..., SS-P-...)
- Identity revisions are recorded and blocked for terminal units
- Unitization adds identities without touching stock
"""

import unittest

import pytest

from shopledger.errors import DuplicateIdentity, InvalidIdentity, InvalidStateTransition, ValidationError
from shopledger.models import Unit, UnitIdentityRevision
from shopledger.schemas import ChangeUnitStatus, RegisterUnit, ReviseUnitIdentity, UnitIntakeRow, UnitizeStock
from shopledger.services import tracking_service
from shopledger.services.unit_service import compute_key, normalize_identity_part


class IdentityKeyTests(unittest.TestCase):
    def test_normalization(self):
        self.assertEqual(normalize_identity_part("  sn 001/a "), "SN-001-A")
        self.assertEqual(normalize_identity_part("--WFC--3D8--"), "WFC-3D8")
        self.assertEqual(normalize_identity_part(None), "")

    def test_compute_key(self):
        self.assertEqual(compute_key(" Walton ", "wfc-3d8", "sn 001/a"), "WALTON-WFC-3D8-SN-001-A")

    def test_equivalent_spellings_collide(self):
        self.assertEqual(
            compute_key("Walton", "WFC 3D8", "SN#001"),
            compute_key("walton", "wfc-3d8", "sn-001"),
        )

    def test_part_without_alphanumerics_rejected(self):
        with self.assertRaises(InvalidIdentity):
            compute_key("Walton", "WFC", "***")


class TestRegisterUnit:
    def test_customer_owned_unit_with_serial(self, db_session, customer):
        unit = tracking_service.register_unit(RegisterUnit(
            ownership="CUSTOMER_OWNED", brand="Singer", model="AC-12", serial="x9", owner_party_id=customer.id,
        ))
        assert unit.unique_serial_key == "SINGER-AC-12-X9"
        assert unit.tag_code is None
        assert unit.source_type == "MANUAL"

    def test_unit_without_serial_gets_tag(self, db_session, customer):
        first = tracking_service.register_unit(RegisterUnit(
            ownership="RENTED_IN", brand="Singer", model="AC-12",
        ))
        second = tracking_service.register_unit(RegisterUnit(
            ownership="RENTED_IN", brand="Singer", model="AC-12",
        ))
        assert first.tag_code == "SS-M-000001"
        assert first.unique_serial_key == "SS-M-000001"
        assert second.tag_code == "SS-M-000002"

    def test_customer_owned_requires_party(self, db_session, reference_data):
        with pytest.raises(ValidationError):
            tracking_service.register_unit(RegisterUnit(ownership="CUSTOMER_OWNED", brand="A", model="B", serial="1"))

    def test_owned_units_come_from_documents(self, db_session, reference_data):
        with pytest.raises(ValidationError):
            tracking_service.register_unit(RegisterUnit(ownership="OWNED", brand="A", model="B", serial="1"))

    def test_duplicate_key_rejected(self, db_session, customer):
        req = RegisterUnit(ownership="CUSTOMER_OWNED", brand="Singer", model="AC-12", serial="X9", owner_party_id=customer.id)
        tracking_service.register_unit(req)
        with pytest.raises(DuplicateIdentity):
            tracking_service.register_unit(RegisterUnit(
                ownership="CUSTOMER_OWNED", brand="singer", model="ac 12", serial="x9", owner_party_id=customer.id,
            ))
        assert db_session.query(Unit).count() == 1

    def test_brand_and_model_required(self, db_session, reference_data):
        with pytest.raises(InvalidIdentity):
            tracking_service.register_unit(RegisterUnit(ownership="RENTED_IN", brand="Singer", serial="1"))


class TestIdentityRevision:
    def _unit(self, customer, serial="X9"):
        return tracking_service.register_unit(RegisterUnit(
            ownership="CUSTOMER_OWNED", brand="Singer", model="AC-12", serial=serial, owner_party_id=customer.id,
        ))

    def test_revision_recorded(self, db_session, customer):
        unit = self._unit(customer)
        revision = tracking_service.revise_unit_identity(ReviseUnitIdentity(
            unit_id=unit.id, change_reason="Typo at intake", serial="X10",
        ))

        assert revision.old_unique_key == "SINGER-AC-12-X9"
        assert revision.new_unique_key == "SINGER-AC-12-X10"
        assert revision.change_reason == "Typo at intake"
        db_session.expire_all()
        assert db_session.get(Unit, unit.id).unique_serial_key == "SINGER-AC-12-X10"
        assert db_session.query(UnitIdentityRevision).filter_by(unit_id=unit.id).count() == 1

    def test_revision_to_existing_key_rejected(self, db_session, customer):
        self._unit(customer, serial="A1")
        unit = self._unit(customer, serial="A2")
        with pytest.raises(DuplicateIdentity):
            tracking_service.revise_unit_identity(ReviseUnitIdentity(unit_id=unit.id, change_reason="fix", serial="a1"))
        assert db_session.query(UnitIdentityRevision).count() == 0

    def test_unchanged_identity_rejected(self, db_session, customer):
        unit = self._unit(customer)
        with pytest.raises(ValidationError):
            tracking_service.revise_unit_identity(ReviseUnitIdentity(unit_id=unit.id, change_reason="noop", serial="X9"))

    def test_terminal_unit_cannot_be_revised(self, db_session, customer):
        unit = self._unit(customer)
        tracking_service.change_unit_status(ChangeUnitStatus(unit_id=unit.id, status="RETURNED_TO_CUSTOMER"))
        with pytest.raises(InvalidStateTransition):
            tracking_service.revise_unit_identity(ReviseUnitIdentity(unit_id=unit.id, change_reason="late", serial="X10"))


class TestUnitStatus:
    def test_status_change_and_terminal_lock(self, db_session, customer, shop):
        unit = tracking_service.register_unit(RegisterUnit(
            ownership="CUSTOMER_OWNED", brand="Singer", model="AC-12", serial="S1", owner_party_id=customer.id,
        ))
        unit = tracking_service.change_unit_status(ChangeUnitStatus(unit_id=unit.id, status="IN_SERVICE", location_id=shop.id))
        assert unit.status == "IN_SERVICE"
        assert unit.current_location_id == shop.id

        tracking_service.change_unit_status(ChangeUnitStatus(unit_id=unit.id, status="RETURNED_TO_CUSTOMER"))
        with pytest.raises(InvalidStateTransition):
            tracking_service.change_unit_status(ChangeUnitStatus(unit_id=unit.id, status="AVAILABLE"))

    def test_unknown_status(self, db_session, customer):
        unit = tracking_service.register_unit(RegisterUnit(
            ownership="CUSTOMER_OWNED", brand="Singer", model="AC-12", serial="S1", owner_party_id=customer.id,
        ))
        with pytest.raises(ValidationError):
            tracking_service.change_unit_status(ChangeUnitStatus(unit_id=unit.id, status="LOST"))


class TestUnitizeStock:
    def test_unitize_creates_units_without_moving_stock(self, db_session, shop, make_product, stock_of):
        product = make_product(title="Sewing Machine", stock=3, is_asset_tracked=True, brand="Singer", model="M100")

        batch = tracking_service.unitize_stock(UnitizeStock(
            product_id=product.id, units=[UnitIntakeRow(), UnitIntakeRow(serial="SN-77")], reason="Stock take",
        ))

        assert batch.unit_count == 2
        units = db_session.query(Unit).filter_by(unitization_batch_id=batch.id).order_by(Unit.id).all()
        assert [u.unique_serial_key for u in units] == ["SS-M-000001", "SINGER-M100-SN-77"]
        assert all(u.current_location_id == shop.id and u.source_type == "UNITIZATION" for u in units)
        assert stock_of(product) == (3, {"SHOP": 3})

    def test_cannot_unitize_more_than_untracked_stock(self, db_session, make_product):
        product = make_product(stock=3, is_asset_tracked=True, brand="Singer", model="M100")
        tracking_service.unitize_stock(UnitizeStock(product_id=product.id, units=[UnitIntakeRow(), UnitIntakeRow()]))

        with pytest.raises(ValidationError):
            tracking_service.unitize_stock(UnitizeStock(product_id=product.id, units=[UnitIntakeRow(), UnitIntakeRow()]))
        assert db_session.query(Unit).count() == 2

    def test_parts_get_part_tags(self, db_session, make_product):
        product = make_product(title="Bobbin case", type="PART", stock=1, is_asset_tracked=True, brand="Singer", model="BC")
        tracking_service.unitize_stock(UnitizeStock(product_id=product.id, units=[UnitIntakeRow()]))
        assert db_session.query(Unit).one().tag_code == "SS-P-000001"

    def test_untracked_product_rejected(self, db_session, make_product):
        product = make_product(stock=2)
        with pytest.raises(ValidationError):
            tracking_service.unitize_stock(UnitizeStock(product_id=product.id, units=[UnitIntakeRow()]))

    def test_count_payload_is_capped(self):
        with pytest.raises(ValidationError):
            UnitizeStock.from_payload({"product_id": 1, "count": 1001})
        req = UnitizeStock.from_payload({"product_id": 1, "count": 3})
        assert len(req.units) == 3
