"""
Item, unit and lot operation tests.

Verifies:
- totalQuantity always equals the number of units after a mutation
- Batches get fresh, globally increasing ids and upsert their bill
- Validation failures return success=False and leave the tree unchanged
"""

from conftest import make_item, make_unit, seed_tree
from stockroom.services import inventory_service, store_service


def _item(item_id):
    return inventory_service.get_item(item_id)


class TestItems:

    def test_add_item(self, app):
        result = inventory_service.add_item("Monitor", "27 inch")

        assert result.success
        item = _item(result.data["id"])
        assert item["name"] == "Monitor"
        assert item["totalQuantity"] == 0
        assert item["subItems"] == []

    def test_duplicate_name_is_rejected_case_insensitively(self, seed):
        result = inventory_service.add_item("laptop")

        assert not result.success
        assert result.message == 'An item named "laptop" already exists.'

    def test_blank_name_is_rejected(self, app):
        result = inventory_service.add_item("   ")

        assert not result.success
        assert result.message == "Item name is required."
        assert store_service.load()["items"] == []

    def test_update_and_delete(self, seed):
        assert inventory_service.update_item("item-1", name="Notebook").success
        assert _item("item-1")["name"] == "Notebook"

        assert inventory_service.delete_item("item-1").success
        assert _item("item-1") is None
        assert not inventory_service.delete_item("item-1").success


class TestAddUnits:

    def test_add_five_units_under_bill_and_lot(self, seed):
        before = _item("item-1")["totalQuantity"]

        result = inventory_service.add_units(
            "item-1",
            quantity=5,
            bill_number="B100",
            bill_date="2024-06-01",
            company="Acme",
            lot_name="L1",
        )

        assert result.success
        item = _item("item-1")
        assert item["totalQuantity"] == before + 5
        assert item["totalQuantity"] == len(item["subItems"])
        new_units = [u for u in item["subItems"] if u["id"] in result.data["ids"]]
        assert len(new_units) == 5
        for unit in new_units:
            assert unit["lotName"] == "L1"
            assert unit["billNumber"] == "B100"
            assert unit["availabilityStatus"] == "Available"
        bills = store_service.load()["bills"]
        assert any(b["billNumber"] == "B100" for b in bills)

    def test_ids_are_global_across_items(self, app):
        seed_tree(items=[
            make_item("item-a", "A", [make_unit("000007")]),
            make_item("item-b", "B", []),
        ])

        result = inventory_service.add_units(
            "item-b", quantity="3", bill_number="B9", bill_date="2024-06-01", company="Acme", lot_name="L9",
        )

        assert result.data["ids"] == ["000008", "000009", "000010"]

    def test_existing_bill_is_updated_not_duplicated(self, seed):
        inventory_service.add_units(
            "item-1", quantity=1, bill_number="B1", bill_date="2024-07-01", company="New Co", lot_name="L2",
            amount=50,
        )

        bills = store_service.load()["bills"]
        assert len(bills) == 1
        assert bills[0] == {"billNumber": "B1", "billDate": "2024-07-01", "company": "New Co", "amount": 50}

    def test_new_bill_without_amount_has_no_amount_field(self, seed):
        inventory_service.add_units(
            "item-1", quantity=1, bill_number="B2", bill_date="2024-07-01", company="Acme", lot_name="L2",
        )

        bill = next(b for b in store_service.load()["bills"] if b["billNumber"] == "B2")
        assert "amount" not in bill

    def test_fractional_quantity_is_rejected_without_mutation(self, seed):
        before = store_service.load()

        for bad in ("2.5", 2.5, 0, -1, "1e3", True, None):
            result = inventory_service.add_units(
                "item-1", quantity=bad, bill_number="B3", bill_date="2024-07-01", company="Acme", lot_name="L",
            )
            assert not result.success, bad

        assert store_service.load() == before

    def test_non_ascii_digits_are_rejected(self, seed):
        for bad in ("\u00b2", "\u0663", "\uff15"):
            result = inventory_service.add_units(
                "item-1", quantity=bad, bill_number="B3", bill_date="2024-07-01", company="Acme", lot_name="L",
            )
            assert not result.success, bad
            assert result.message == "Quantity must be a whole number."

    def test_missing_item(self, seed):
        result = inventory_service.add_units(
            "nope", quantity=1, bill_number="B3", bill_date="2024-07-01", company="Acme", lot_name="L",
        )

        assert result.message == "Item not found."


class TestDeletes:

    def test_delete_unit_recounts(self, seed):
        assert inventory_service.delete_sub_item("item-1", "000001").success

        item = _item("item-1")
        assert item["totalQuantity"] == 3
        assert "000001" not in [u["id"] for u in item["subItems"]]

    def test_delete_lot(self, seed):
        inventory_service.add_units(
            "item-1", quantity=2, bill_number="B1", bill_date="2024-01-01", company="Acme", lot_name="L7",
        )

        result = inventory_service.delete_lot("item-1", "L7")

        assert result.success
        item = _item("item-1")
        assert item["totalQuantity"] == 4
        assert not inventory_service.delete_lot("item-1", "L7").success


class TestReads:

    def test_find_unit(self, seed):
        found = inventory_service.find_unit("000002")

        assert found["item"]["id"] == "item-1"
        assert "subItems" not in found["item"]
        assert found["subItem"]["assignedTo"]["personId"] == "U1"
        assert inventory_service.find_unit("999999") is None

    def test_summary(self, seed):
        summary = inventory_service.get_inventory_summary()

        assert summary["units"] == 4
        assert summary["byStatus"] == {"Available": 2, "In Use": 1, "Discarded": 1}
        assert summary["users"] == 4
