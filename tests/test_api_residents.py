"""
Tests for the resident, document and care event endpoints
"""
from datetime import date, datetime

import pytest

from models import Document
from records import calculate_age, is_valid_object_id

from helpers import BLOB_BASE


def _document(resident_id, **overrides):
    data = {
        "resident_id": resident_id,
        "name": "Aadhaar",
        "type": "identity_proof",
        "file_path": f"{BLOB_BASE}/aadhaar.png",
        "mime_type": "image/png",
        "size": 2048,
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# Residents
# ---------------------------------------------------------------------------

class TestResidents:

    def test_create_generates_registration_no(self, client):
        response = client.post("/api/residents", json={
            "name": "Asha", "gender": "Female", "date_of_birth": "1990-03-05",
            "address": {"city": "Pune", "state": "Maharashtra"},
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["registration_no"] == f"REG-{datetime.now().year}-0001"
        assert data["age"] == calculate_age(date(1990, 3, 5))
        assert data["address"]["city"] == "Pune"
        assert is_valid_object_id(data["id"])

    def test_duplicate_registration_no(self, client, make_resident):
        make_resident(registration_no="REG-2024-0001")
        response = client.post("/api/residents", json={"name": "Ravi", "registration_no": "REG-2024-0001"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Registration number already exists"}

    def test_validation_error_shape(self, client):
        response = client.post("/api/residents", json={"name": "Ravi", "mobile_no": "123"})
        body = response.json()
        assert response.status_code == 422
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert any(e.startswith("mobile_no") for e in body["errors"])

    @pytest.mark.parametrize("field,value", [
        ("gender", "Robot"),
        ("category", "Urgent"),
        ("priority_level", "Whenever"),
        ("admission_status", "Gone"),
    ])
    def test_choice_fields_rejected(self, client, field, value):
        response = client.post("/api/residents", json={"name": "Ravi", field: value})
        assert response.status_code == 422
        assert any(e.startswith(field) for e in response.json()["errors"])

    def test_choice_fields_accepted(self, client):
        response = client.post("/api/residents", json={
            "name": "Ravi", "gender": "Other", "category": "Routine",
            "priority_level": "Critical", "admission_status": "On Leave",
        })
        assert response.status_code == 201
        assert response.json()["data"]["admission_status"] == "On Leave"

    def test_list_pagination(self, client, make_resident):
        for day in (1, 2, 3):
            make_resident(name=f"Resident {day}", admission_date=datetime(2024, 1, day))

        body = client.get("/api/residents", params={"limit": 2}).json()
        assert [r["name"] for r in body["data"]] == ["Resident 3", "Resident 2"]
        assert body["pagination"] == {
            "current_page": 1,
            "total_pages": 2,
            "total_items": 3,
            "items_per_page": 2,
            "has_next": True,
            "has_prev": False,
        }

        second = client.get("/api/residents", params={"limit": 2, "page": 2}).json()
        assert [r["name"] for r in second["data"]] == ["Resident 1"]
        assert second["pagination"]["has_prev"] is True

    def test_list_filtered(self, client, make_resident):
        make_resident(name="Asha", gender="Female")
        make_resident(name="Ravi", gender="Male")
        body = client.get("/api/residents", params={"gender": "Male"}).json()
        assert [r["name"] for r in body["data"]] == ["Ravi"]

    def test_get_with_photos(self, client, make_resident):
        resident = make_resident(name="Asha", photo_before_admission=f"{BLOB_BASE}/before.png")
        data = client.get(f"/api/residents/{resident.id}").json()["data"]
        assert data["photos"]["before"] == f"{BLOB_BASE}/before.png"
        assert data["photos"]["primary"] == f"{BLOB_BASE}/before.png"
        assert data["photos"]["after"] is None

    def test_get_invalid_and_missing(self, client):
        assert client.get("/api/residents/xyz").status_code == 400
        assert client.get(f"/api/residents/{'0' * 24}").status_code == 404

    def test_update_is_partial(self, client, make_resident):
        resident = make_resident(name="Asha", health_status="Critical")
        response = client.put(f"/api/residents/{resident.id}", json={"health_status": "Stable"})

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["health_status"] == "Stable"
        assert data["name"] == "Asha"

    def test_update_to_taken_registration_no(self, client, make_resident):
        make_resident(registration_no="REG-2024-0100")
        resident = make_resident()
        response = client.put(f"/api/residents/{resident.id}", json={"registration_no": "REG-2024-0100"})
        assert response.status_code == 400

    def test_delete_removes_documents(self, client, db_session, make_resident):
        resident = make_resident(documents=[{k: v for k, v in _document("").items() if k != "resident_id"}])
        response = client.delete(f"/api/residents/{resident.id}")

        assert response.status_code == 200
        assert client.get(f"/api/residents/{resident.id}").status_code == 404
        assert db_session.query(Document).count() == 0

    def test_stats_summary(self, client, make_resident):
        now = datetime.now()
        make_resident(gender="Female", health_status="Stable", created_at=now)
        make_resident(gender="Female", health_status="Critical", created_at=now)
        make_resident(gender="Male", is_active=False, created_at=now)

        data = client.get("/api/residents/stats/summary").json()["data"]
        assert data["total_residents"] == 3
        assert data["active_residents"] == 2
        assert data["today_registrations"] == 2
        assert data["gender_stats"] == [{"value": "Female", "count": 2}]
        assert sorted(s["value"] for s in data["health_status_stats"]) == ["Critical", "Stable"]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class TestDocuments:

    def test_create_and_list(self, client, make_resident):
        resident = make_resident()
        response = client.post("/api/documents", json=_document(resident.id))

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Aadhaar"

        body = client.get("/api/documents", params={"resident_id": resident.id}).json()
        assert body["count"] == 1
        assert body["data"][0]["mime_type"] == "image/png"

    def test_invalid_type(self, client, make_resident):
        resident = make_resident()
        response = client.post("/api/documents", json=_document(resident.id, type="passport"))
        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid document type. Must be one of: medical, ")

    def test_unknown_resident(self, client):
        response = client.post("/api/documents", json=_document("0" * 24))
        assert response.status_code == 404
        assert response.json()["message"] == "Resident not found"

    def test_delete(self, client, make_resident):
        resident = make_resident()
        document_id = client.post("/api/documents", json=_document(resident.id)).json()["data"]["id"]

        assert client.delete(f"/api/documents/{document_id}").status_code == 200
        assert client.get("/api/documents", params={"resident_id": resident.id}).json()["count"] == 0

    def test_delete_bad_ids(self, client):
        response = client.delete("/api/documents/bad")
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid document ID format"

        response = client.delete(f"/api/documents/{'0' * 24}")
        assert response.status_code == 404
        assert response.json()["message"] == "Document not found"


# ---------------------------------------------------------------------------
# Care events
# ---------------------------------------------------------------------------

class TestCareEvents:

    @pytest.fixture
    def resident(self, make_resident):
        return make_resident(name="Asha")

    def _add(self, client, resident_id, **fields):
        payload = {"type": "Checkup", "description": "Routine check", "date": "2024-01-10T09:00:00"}
        payload.update(fields)
        return client.post(f"/api/residents/{resident_id}/care-events", json=payload)

    def test_add_defaults(self, client, resident):
        response = self._add(client, resident.id)

        assert response.status_code == 201
        event = response.json()["data"]
        assert is_valid_object_id(event["id"])
        assert event["created_by"] == "Admin"
        assert event["status"] == "Completed"
        assert event["date"].startswith("2024-01-10T09:00:00")

    def test_list_most_recent_first(self, client, resident):
        self._add(client, resident.id, type="Checkup", date="2024-01-10T09:00:00")
        self._add(client, resident.id, type="Vaccination", date="2024-03-01T09:00:00")

        body = client.get(f"/api/residents/{resident.id}/care-events").json()
        assert body["count"] == 2
        assert [e["type"] for e in body["data"]] == ["Vaccination", "Checkup"]

    def test_stored_in_insertion_order(self, client, db_session, resident):
        self._add(client, resident.id, type="Checkup", date="2024-01-10T09:00:00")
        self._add(client, resident.id, type="Vaccination", date="2023-12-01T09:00:00")

        db_session.refresh(resident)
        assert [e["type"] for e in resident.care_events] == ["Checkup", "Vaccination"]

    def test_update(self, client, resident):
        event_id = self._add(client, resident.id).json()["data"]["id"]
        response = client.put(
            f"/api/residents/{resident.id}/care-events/{event_id}",
            json={"status": "Follow-up", "doctor": "Dr. Rao"},
        )

        assert response.status_code == 200
        event = response.json()["data"]
        assert event["status"] == "Follow-up"
        assert event["doctor"] == "Dr. Rao"
        assert event["description"] == "Routine check"

    def test_delete(self, client, resident):
        event_id = self._add(client, resident.id).json()["data"]["id"]
        assert client.delete(f"/api/residents/{resident.id}/care-events/{event_id}").status_code == 200
        assert client.get(f"/api/residents/{resident.id}/care-events").json()["count"] == 0

    def test_bad_ids(self, client, resident):
        response = client.put(f"/api/residents/{resident.id}/care-events/bad", json={"status": "Done"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid ID format"

    def test_missing_event(self, client, resident):
        response = client.delete(f"/api/residents/{resident.id}/care-events/{'0' * 24}")
        assert response.status_code == 404
        assert response.json()["message"] == "Care event not found"

    def test_missing_resident(self, client):
        assert self._add(client, "0" * 24).status_code == 404


# ---------------------------------------------------------------------------
# Registration form helpers and dashboard
# ---------------------------------------------------------------------------

class TestFormHelpers:

    def test_validate_registration_no(self, client, make_resident):
        make_resident(registration_no="REG-2024-0042")
        response = client.post("/api/residents/validate", json={"field": "registration_no", "value": "REG-2024-0042"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {"registration_no": {
                "is_valid": False,
                "message": "Registration number already exists",
                "suggestion": "Try: REG-2024-0042-1",
            }},
        }

    def test_validate_skips_resident_being_edited(self, client, make_resident):
        resident = make_resident(mobile_no="9876543210")
        response = client.post("/api/residents/validate", json={
            "field": "mobile_no", "value": "9876543210", "context": {"resident_id": resident.id},
        })
        assert response.json()["data"]["mobile_no"]["message"] == "Mobile number is valid"

    def test_validate_age_as_number(self, client):
        response = client.post("/api/residents/validate", json={"field": "age", "value": 130})
        assert response.json()["data"]["age"] == {
            "is_valid": False, "message": "Invalid age", "suggestion": "Enter age between 0-120 years",
        }

    def test_validate_requires_field(self, client):
        assert client.post("/api/residents/validate", json={"value": "x"}).status_code == 422

    def test_autocomplete(self, client, make_resident):
        make_resident(address={"district": "Pune"})
        make_resident(address={"district": "Palghar"})
        make_resident(address={"district": "Mysuru"})

        response = client.get("/api/residents/autocomplete/address.district", params={"q": "p"})
        assert response.status_code == 200
        assert response.json()["data"] == {
            "field": "address.district", "query": "p", "suggestions": ["Palghar", "Pune"],
        }

    def test_autocomplete_unknown_field(self, client, make_resident):
        make_resident(name="Asha")
        data = client.get("/api/residents/autocomplete/name").json()["data"]
        assert data["suggestions"] == []


class TestDashboard:

    def test_notifications_sorted_by_priority(self, client, make_resident):
        make_resident(mobile_no="9876543210", guardian_name="Sunil", health_status="Critical")
        make_resident(mobile_no="9876543211", guardian_name="Sunil", health_status=None)

        body = client.get("/api/residents/notifications").json()
        notifications = body["data"]["notifications"]

        assert [n["id"] for n in notifications] == ["health_concerns", "incomplete_records", "recent_registrations"]
        assert notifications[0]["message"] == "1 resident may need immediate health attention"
        assert notifications[1]["message"] == "1 record has missing important information"
        assert notifications[2]["message"] == "2 new residents registered in the last 7 days"
        assert body["data"]["summary"] == {"total": 3, "high": 1, "medium": 1, "low": 1}

    def test_notifications_growth_milestone(self, client, make_resident):
        for n in range(11):
            make_resident(mobile_no=f"98765432{n:02d}", guardian_name="Sunil", health_status="Stable")
        ids = [n["id"] for n in client.get("/api/residents/notifications").json()["data"]["notifications"]]
        assert ids == ["recent_registrations", "growth_milestone"]

    def test_notifications_empty(self, client):
        data = client.get("/api/residents/notifications").json()["data"]
        assert data == {"notifications": [], "summary": {"total": 0, "high": 0, "medium": 0, "low": 0}}

    def test_smart_search(self, client, make_resident):
        make_resident(name="Asha", name_given_by_organization="Asha Devi", health_status="Critical",
                      admission_date=datetime(2024, 1, 9, 8, 0),
                      address={"state": "Maharashtra", "full_address": "12 Station Road"})
        make_resident(name="Ravi", address={"district": "Pune"})

        body = client.get("/api/residents/search/smart", params={"q": "asha", "quick_filter": "health_concerns"}).json()

        assert body["search_info"] == {"query": "asha", "quick_filter": "health_concerns", "results_found": 1}
        row = body["data"][0]
        assert row["name"] == "Asha Devi"
        assert row["date"] == "9/1/2024"
        assert row["place_name"] == "Maharashtra"
        assert row["address"] == "12 Station Road"
        assert body["pagination"]["total_items"] == 1

    def test_smart_search_sort_and_page(self, client, make_resident):
        for name in ("Meena", "Asha", "Ravi"):
            make_resident(name=name)
        body = client.get("/api/residents/search/smart", params={
            "sort_by": "name", "sort_order": "asc", "limit": 2, "page": 2,
        }).json()
        assert [r["name"] for r in body["data"]] == ["Ravi"]
        assert body["data"][0]["place_name"] == "N/A"
        assert body["pagination"]["has_prev"] is True

    def test_smart_search_unknown_quick_filter(self, client):
        response = client.get("/api/residents/search/smart", params={"quick_filter": "everyone"})
        assert response.status_code == 422

    def test_enhanced_stats(self, client, make_resident):
        make_resident(gender="Female", age=34, health_status="Critical", address={"state": "Maharashtra"})
        make_resident(gender="Female", age=8, address={"state": "Maharashtra"})
        make_resident(gender="Male", age=70, address={"state": "Karnataka"}, created_at=datetime(2020, 1, 1))
        make_resident(gender="Male", is_active=False)

        data = client.get("/api/residents/stats/enhanced").json()["data"]
        metrics = data["metrics"]
        charts = data["charts"]

        assert metrics["total_residents"] == 3
        assert metrics["today_registrations"] == 2
        assert metrics["this_month_registrations"] == 2
        assert metrics["growth_rate"] == 100.0
        assert metrics["health_alerts"] == 1
        assert charts["gender_distribution"][0] == {"label": "Female", "value": 2, "percentage": 66.7}
        assert [b["value"] for b in charts["age_distribution"]] == [1, 0, 1, 0, 1]
        assert len(charts["monthly_trends"]) == 6
        assert charts["monthly_trends"][-1]["count"] == 2
        assert charts["state_distribution"][0] == {"label": "Maharashtra", "value": 2, "percentage": 66.7}
        assert data["insights"][0] == {"type": "growth", "message": "100.0% growth this month", "trend": "up"}
        assert data["insights"][2]["message"] == "2 new registrations today"

    def test_enhanced_stats_empty(self, client):
        data = client.get("/api/residents/stats/enhanced").json()["data"]
        assert data["metrics"]["growth_rate"] == 0.0
        assert data["charts"]["gender_distribution"] == []
        assert [i["message"] for i in data["insights"]] == [
            "No growth this month", "No immediate health concerns", "No new registrations today",
        ]
