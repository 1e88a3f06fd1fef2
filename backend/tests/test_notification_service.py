"""
Approval workflow tests.

Verifies:
- Approve applies the transition; reject applies nothing
- Approval re-checks the unit's current status and auto-rejects with a reason
- A second action on the same notification is refused and cleans it up
- Registration approval creates the user with the bootstrap role
- A new assignee may not reuse an existing user's email or phone
"""

from conftest import make_item, make_unit, make_user, seed_tree
from stockroom.services import inventory_service, notification_service, session_service, store_service, user_service


ASSIGNEE = {
    "personId": "U1",
    "name": "User U1",
    "email": "u1@example.com",
    "phone": "555-U1",
}


def _unit(sub_item_id):
    return inventory_service.find_unit(sub_item_id)["subItem"]


def _notification(notification_id):
    return notification_service.get_notification(notification_id)


def _request(kind, sub_item_id, **kwargs):
    if kind == "allot":
        result = notification_service.request_allotment("item-1", sub_item_id, kwargs.get("assignment", ASSIGNEE))
    else:
        result = notification_service.request_status_change("item-1", sub_item_id, kind, kwargs.get("requester"))
    assert result.success, result.message
    return result.data["id"]


class TestRequests:

    def test_request_allotment_queues_pending(self, seed):
        result = notification_service.request_allotment("item-1", "000001", ASSIGNEE)

        assert result.success
        assert result.message == "Request to allot unit has been submitted for approval."
        n = _notification(result.data["id"])
        assert n["status"] == "pending"
        assert n["itemName"] == "Laptop"
        assert n["requestedData"]["assignmentDetails"]["personId"] == "U1"
        assert n["requestedData"]["assignmentDetails"]["assignmentDate"]
        assert _unit("000001")["availabilityStatus"] == "Available"

    def test_newest_request_first(self, seed):
        first = _request("discard", "000001")
        second = _request("discard", "000004")

        ids = [n["id"] for n in notification_service.list_notifications()]
        assert ids[:2] == [second, first]

    def test_request_for_missing_item_or_unit(self, seed):
        assert notification_service.request_allotment("nope", "000001", ASSIGNEE).message == "Item not found."
        assert notification_service.request_allotment("item-1", "999999", ASSIGNEE).message == "Unit not found."
        assert store_service.load()["notifications"] == []

    def test_unallot_request_snapshots_current_assignment(self, seed):
        notification_id = _request("unallot", "000002", requester={"personId": "CLERK", "name": "User CLERK"})

        data = _notification(notification_id)["requestedData"]
        assert data["assignmentDetails"]["personId"] == "U1"
        assert data["requester"] == {"personId": "CLERK", "name": "User CLERK"}

    def test_unsupported_status_change(self, seed):
        result = notification_service.request_status_change("item-1", "000001", "allot")

        assert not result.success


class TestApproval:

    def test_allot_then_unallot_round_trip(self, seed):
        allot_id = _request("allot", "000001")
        result = notification_service.handle_notification_action(allot_id, "approve")

        assert result.success
        assert result.message == "Request has been approved."
        unit = _unit("000001")
        assert unit["availabilityStatus"] == "In Use"
        assert unit["assignedTo"]["personId"] == "U1"
        n = _notification(allot_id)
        assert n["status"] == "approved"
        assert n["handledAt"]

        unallot_id = _request("unallot", "000001")
        notification_service.handle_notification_action(unallot_id, "approve")

        unit = _unit("000001")
        assert unit["availabilityStatus"] == "Available"
        assert "assignedTo" not in unit

    def test_discard_of_in_use_unit_is_auto_rejected(self, seed):
        notification_id = _request("discard", "000001")
        # Unit gets allotted through another approved request in the meantime.
        notification_service.handle_notification_action(_request("allot", "000001"), "approve")

        result = notification_service.handle_notification_action(notification_id, "approve")

        assert result.success
        assert result.message.startswith("Request has been rejected: ")
        assert "In Use" in result.message
        n = _notification(notification_id)
        assert n["status"] == "rejected"
        assert "In Use" in n["rejectionReason"]
        unit = _unit("000001")
        assert unit["availabilityStatus"] == "In Use"
        assert "discardedDate" not in unit

    def test_double_approve_is_refused_and_cleaned_up(self, seed):
        notification_id = _request("discard", "000001")
        notification_service.handle_notification_action(notification_id, "approve")
        discarded_date = _unit("000001")["discardedDate"]

        result = notification_service.handle_notification_action(notification_id, "approve")

        assert not result.success
        assert "already" in result.message
        assert _notification(notification_id) is None
        unit = _unit("000001")
        assert unit["availabilityStatus"] == "Discarded"
        assert unit["discardedDate"] == discarded_date

    def test_approve_then_reject_keeps_first_outcome(self, seed):
        notification_id = _request("restore", "000003")
        notification_service.handle_notification_action(notification_id, "approve")

        result = notification_service.handle_notification_action(notification_id, "reject")

        assert result.message == "This request has already been handled."
        assert _unit("000003")["availabilityStatus"] == "Available"

    def test_reject_has_no_effect(self, seed):
        notification_id = _request("discard", "000001")

        result = notification_service.handle_notification_action(notification_id, "reject")

        assert result.message == "Request has been rejected."
        assert _unit("000001")["availabilityStatus"] == "Available"
        assert "rejectionReason" not in _notification(notification_id)

    def test_unknown_notification(self, seed):
        result = notification_service.handle_notification_action("notif-0", "approve")

        assert result.message == "Notification not found."

    def test_deleted_item_and_unit(self, seed):
        unit_gone = _request("discard", "000004")
        item_gone = _request("discard", "000001")
        inventory_service.delete_sub_item("item-1", "000004")

        result = notification_service.handle_notification_action(unit_gone, "approve")
        assert result.message == "Request has been rejected: Sub-item with ID 000004 no longer exists."

        inventory_service.delete_item("item-1")
        result = notification_service.handle_notification_action(item_gone, "approve")
        assert result.message == "Request has been rejected: Item with ID item-1 no longer exists."

    def test_allot_to_unknown_person_creates_user(self, seed):
        assignment = {"personId": "EXT", "name": "Contractor", "email": "ext@example.com", "phone": "555-EXT"}
        notification_id = _request("allot", "000001", assignment=assignment)

        notification_service.handle_notification_action(notification_id, "approve")

        user = user_service.get_user("EXT")
        assert user["role"] == "D"
        assert [u["subItem"]["id"] for u in user["assignedUnits"]] == ["000001"]

    def test_allot_without_assignment_details(self, app):
        seed_tree(
            items=[make_item("item-1", "Laptop", [make_unit("000001")])],
            notifications=[{
                "id": "notif-1", "type": "allot", "status": "pending", "createdAt": "2024-01-01T00:00:00Z",
                "itemId": "item-1", "subItemId": "000001", "requestedData": {},
            }],
        )

        result = notification_service.handle_notification_action("notif-1", "approve")

        assert result.message == "Request has been rejected: Assignment details are missing from the request."
        assert _unit("000001")["availabilityStatus"] == "Available"

    def test_allot_request_with_taken_email_is_refused(self, seed):
        assignment = {"personId": "EXT", "name": "Contractor", "email": "U1@example.com", "phone": "555-EXT"}

        result = notification_service.request_allotment("item-1", "000001", assignment)

        assert not result.success
        assert result.message == 'A user with email "U1@example.com" already exists.'
        assert store_service.load()["notifications"] == []

    def test_allot_request_for_existing_user_skips_identity_check(self, seed):
        assignment = dict(ASSIGNEE, phone="555-NEW")

        result = notification_service.request_allotment("item-1", "000001", assignment)

        assert result.success, result.message

    def test_approval_rejects_new_assignee_with_taken_identity(self, app):
        seed_tree(
            items=[make_item("item-1", "Laptop", [make_unit("000001"), make_unit("000004")])],
            users=[make_user("U1", "D")],
            notifications=[
                {
                    "id": "notif-email", "type": "allot", "status": "pending",
                    "createdAt": "2024-01-01T00:00:00Z", "itemId": "item-1", "subItemId": "000001",
                    "requestedData": {"assignmentDetails": {
                        "personId": "EXT", "name": "Contractor", "email": "u1@example.com", "phone": "555-EXT",
                    }},
                },
                {
                    "id": "notif-phone", "type": "allot", "status": "pending",
                    "createdAt": "2024-01-01T00:00:00Z", "itemId": "item-1", "subItemId": "000004",
                    "requestedData": {"assignmentDetails": {
                        "personId": "EXT2", "name": "Temp", "email": "ext2@example.com", "phone": "555-U1",
                    }},
                },
            ],
        )

        by_email = notification_service.handle_notification_action("notif-email", "approve")
        by_phone = notification_service.handle_notification_action("notif-phone", "approve")

        assert by_email.message == 'Request has been rejected: A user with email "u1@example.com" already exists.'
        assert by_phone.message == 'Request has been rejected: A user with phone number "555-U1" already exists.'
        assert _notification("notif-email")["rejectionReason"] == 'A user with email "u1@example.com" already exists.'
        assert _unit("000001")["availabilityStatus"] == "Available"
        assert _unit("000004")["availabilityStatus"] == "Available"
        assert [u["personId"] for u in store_service.load()["users"]] == ["U1"]
        assert session_service.authenticate("U1", "u1@example.com")["personId"] == "U1"


class TestRegistrationApproval:

    NEW_USER = {"personId": "N1", "name": "New", "email": "n1@example.com", "phone": "555-N1"}

    def test_first_user_gets_bootstrap_role(self, app):
        result = user_service.request_registration(self.NEW_USER)

        notification_service.handle_notification_action(result.data["id"], "approve")

        assert user_service.get_user("N1")["role"] == "C"

    def test_later_users_get_default_role(self, seed):
        result = user_service.request_registration(self.NEW_USER)

        notification_service.handle_notification_action(result.data["id"], "approve")

        assert user_service.get_user("N1")["role"] == "D"

    def test_identity_taken_since_request_is_rejected(self, seed):
        result = user_service.request_registration(self.NEW_USER)
        tree = store_service.load()
        tree["users"].append(make_user("N1", "D"))
        store_service.save({"users": tree["users"]})

        outcome = notification_service.handle_notification_action(result.data["id"], "approve")

        assert outcome.message == 'Request has been rejected: A user with ID "N1" already exists.'
        assert len([u for u in user_service.list_users() if u["personId"] == "N1"]) == 1

    def test_missing_user_data(self, app):
        seed_tree(notifications=[{
            "id": "notif-reg-1", "type": "register", "status": "pending",
            "createdAt": "2024-01-01T00:00:00Z", "requestedData": {},
        }])

        result = notification_service.handle_notification_action("notif-reg-1", "approve")

        assert result.message == "Request has been rejected: User data is missing from the request."


class TestListing:

    def test_filter_by_status(self, seed):
        approved = _request("discard", "000001")
        pending = _request("discard", "000004")
        notification_service.handle_notification_action(approved, "approve")

        assert [n["id"] for n in notification_service.list_notifications("pending")] == [pending]
        assert [n["id"] for n in notification_service.list_notifications("approved")] == [approved]
