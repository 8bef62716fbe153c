"""
Tests for the report endpoints: download, preview, print and bulk export
"""
import io
from datetime import date, datetime
from urllib.parse import quote

import pytest
from openpyxl import load_workbook

from models import Setting

from helpers import BLOB_BASE

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def asha(make_resident):
    return make_resident(
        name="Asha",
        registration_no="REG-2024-0007",
        gender="Female",
        age=34,
        health_status="Stable",
        address={"district": "Pune", "state": "MH"},
    )


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------

class TestDownload:

    def test_pdf_default_template(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/download")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == "attachment; filename=resident-REG-2024-0007-detailed.pdf"
        assert response.content.startswith(b"%PDF")
        assert int(response.headers["content-length"]) == len(response.content)

    @pytest.mark.parametrize("template", ["detailed", "summary", "medical", "print"])
    def test_pdf_each_template(self, client, asha, template):
        response = client.get(f"/api/residents/{asha.id}/download", params={"template": template})
        assert response.status_code == 200
        assert response.headers["content-disposition"].endswith(f"resident-REG-2024-0007-{template}.pdf")

    def test_excel(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/download", params={"format": "excel", "template": "summary"})

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        today = date.today().isoformat()
        assert response.headers["content-disposition"] == (
            f"attachment; filename=resident_REG-2024-0007_summary_{today}.xlsx"
        )
        ws = load_workbook(io.BytesIO(response.content)).active
        assert ws.title == "Resident Details"
        assert ws["C2"].value == "Asha"
        assert ws["I2"].value == "Pune, MH"

    def test_unreachable_photo_still_renders(self, client, make_resident):
        resident = make_resident(name="Ravi", photo_before_admission=f"{BLOB_BASE}/gone.png")
        response = client.get(f"/api/residents/{resident.id}/download")
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")

    def test_invalid_id(self, client):
        response = client.get("/api/residents/not-an-id/download")
        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid resident ID format"}

    def test_unknown_resident(self, client):
        response = client.get(f"/api/residents/{'0' * 24}/download")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Resident not found"}

    def test_invalid_format(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/download", params={"format": "csv"})
        assert response.status_code == 400
        assert response.json()["message"] == 'Invalid format specified. Use "pdf" or "excel".'

    @pytest.mark.parametrize("fmt", ["pdf", "excel"])
    def test_invalid_template(self, client, asha, fmt):
        response = client.get(f"/api/residents/{asha.id}/download", params={"format": fmt, "template": "fancy"})
        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Invalid template 'fancy'. Use one of: detailed, summary, medical, print",
        }

    def test_resident_checked_before_format(self, client):
        response = client.get(f"/api/residents/{'0' * 24}/download", params={"format": "csv"})
        assert response.status_code == 404

    def test_non_latin_registration_no_in_filename(self, client, make_resident):
        resident = make_resident(name="Asha", registration_no="REG-२०२४-1")
        response = client.get(f"/api/residents/{resident.id}/download")

        assert response.status_code == 200
        assert response.headers["content-disposition"] == (
            "attachment; filename=resident-REG-____-1-detailed.pdf; "
            f"filename*=UTF-8''{quote('resident-REG-२०२४-1-detailed.pdf', safe='')}"
        )

    def test_separators_in_registration_no_are_escaped(self, client, make_resident):
        resident = make_resident(name="Asha", registration_no="REG 2024; x")
        response = client.get(f"/api/residents/{resident.id}/download", params={"format": "excel"})

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert disposition.startswith(
            f"attachment; filename=resident_REG_2024__x_detailed_{date.today().isoformat()}.xlsx; filename*=UTF-8''"
        )
        assert "REG%202024%3B%20x" in disposition

    def test_print_filename_escaped(self, client, make_resident):
        resident = make_resident(registration_no="REG 7")
        response = client.get(f"/api/residents/{resident.id}/print")
        assert response.headers["content-disposition"].startswith("inline; filename=resident-REG_7-print.pdf; ")

    def test_bad_branding_color_still_renders(self, client, db_session, asha):
        db_session.add(Setting(category="branding", key="primary_color", value="green"))
        db_session.commit()

        response = client.get(f"/api/residents/{asha.id}/download")
        assert response.status_code == 200
        assert response.content.startswith(b"%PDF")


# ---------------------------------------------------------------------------
# Preview and print
# ---------------------------------------------------------------------------

class TestPreviewAndPrint:

    def test_preview_inline(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/preview")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == "inline; filename=resident-REG-2024-0007-preview.pdf"

    def test_preview_invalid_template(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/preview", params={"template": "fancy"})
        assert response.status_code == 400

    def test_print_inline(self, client, asha):
        response = client.get(f"/api/residents/{asha.id}/print")
        assert response.status_code == 200
        assert response.headers["content-disposition"] == "inline; filename=resident-REG-2024-0007-print.pdf"

    def test_print_unknown_resident(self, client):
        assert client.get(f"/api/residents/{'0' * 24}/print").status_code == 404


# ---------------------------------------------------------------------------
# Bulk export
# ---------------------------------------------------------------------------

class TestExport:

    @pytest.fixture
    def residents(self, make_resident):
        make_resident(name="Asha", gender="Female", admission_date=datetime(2024, 1, 9))
        make_resident(name="Ravi", gender="Male", admission_date=datetime(2024, 2, 20))
        make_resident(name="Meena", gender="Female", admission_date=datetime(2023, 11, 2))

    def _sheet(self, response):
        return load_workbook(io.BytesIO(response.content)).active

    def test_export_all(self, client, residents):
        response = client.get("/api/residents/export")

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        assert response.headers["content-disposition"] == (
            f"attachment; filename=residents_export_{date.today().isoformat()}.xlsx"
        )
        ws = self._sheet(response)
        assert ws.title == "Residents"
        assert [ws.cell(row=r, column=2).value for r in range(2, ws.max_row + 1)] == ["Ravi", "Asha", "Meena"]

    def test_export_filtered(self, client, residents):
        ws = self._sheet(client.get("/api/residents/export", params={"gender": "Female"}))
        assert ws.max_row == 3

    def test_export_empty(self, client):
        ws = self._sheet(client.get("/api/residents/export"))
        assert ws.max_row == 1
