"""
Spreadsheet export

Flattens resident snapshots into rows of named columns and writes them to
an .xlsx workbook with openpyxl. Missing values become "N/A"; column widths
are presentation only.
"""

import io
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .formatting import PLACEHOLDER, display, format_date, join_names

ADDRESS_PARTS = ('full_address', 'city', 'district', 'state', 'country')


def compose_address(address) -> str:
    """Non-empty address parts joined with ", ", or N/A."""
    if not address:
        return PLACEHOLDER
    parts = []
    for key in ADDRESS_PARTS:
        value = address.get(key)
        if value is None:
            continue
        text = str(value).strip().strip(',').strip()
        if text:
            parts.append(text)
    return ", ".join(parts) if parts else PLACEHOLDER


@dataclass(frozen=True)
class Column:
    header: str
    extract: Callable[[Any], str]
    width: int


def col(header: str, key: str, width: int, fmt: Callable[[Any], str] = display) -> Column:
    return Column(header, lambda r: fmt(r.get(key)), width)


def _address(resident) -> str:
    return compose_address(resident.address)


def _documents(resident) -> str:
    return join_names(resident.documents)


# =============================================================================
# COLUMN SETS
# =============================================================================

# Single resident download
RESIDENT_COLUMNS = (
    col("Registration No", 'registration_no', 15),
    col("Admission Date", 'admission_date', 12, format_date),
    col("Full Name", 'name', 20),
    col("Organization Name", 'name_given_by_organization', 20),
    col("Date of Birth", 'date_of_birth', 12, format_date),
    col("Gender", 'gender', 10),
    col("Age", 'age', 8),
    col("Mobile Number", 'mobile_no', 15),
    Column("Address", _address, 40),
    col("Guardian Name", 'guardian_name', 20),
    col("Relation", 'relation_with', 15),
    col("Admitted By", 'relative_admit', 15),
    col("Health Status", 'health_status', 15),
    col("Blood Group", 'blood_group', 10),
    col("Weight (kg)", 'weight', 8),
    col("Height (cm)", 'height', 8),
    col("Disability Status", 'disability_status', 15),
    col("Medical Conditions", 'medical_conditions', 30),
    col("Allergies", 'allergies', 30),
    col("Medications", 'medications', 30),
    col("Category", 'category', 12),
    col("Rehabilitation Status", 'rehab_status', 15),
    col("Voter ID", 'voter_id', 15),
    col("Aadhaar Number", 'aadhaar_number', 15),
    col("Religion", 'religion', 12),
    col("Identification Mark", 'identification_mark', 20),
    col("Ward", 'ward', 12),
    Column("Documents", _documents, 30),
)

# Bulk export
EXPORT_COLUMNS = (
    col("Registration No", 'registration_no', 15),
    col("Name", 'name', 20),
    col("Organization Name", 'name_given_by_organization', 20),
    col("Gender", 'gender', 10),
    col("Age", 'age', 8),
    col("Date of Birth", 'date_of_birth', 12, format_date),
    col("Phone", 'mobile_no', 15),
    Column("Address", _address, 40),
    col("Guardian Name", 'guardian_name', 20),
    col("Health Status", 'health_status', 15),
    col("Category", 'category', 12),
    col("Blood Group", 'blood_group', 10),
    col("Disability Status", 'disability_status', 15),
    col("Ward", 'ward', 12),
    col("Admission Date", 'admission_date', 12, format_date),
    col("Voter ID", 'voter_id', 15),
    col("Aadhaar", 'aadhaar_number', 15),
    col("Religion", 'religion', 12),
    col("Weight", 'weight', 8),
    col("Height", 'height', 8),
    col("Comments", 'comments', 30),
    Column("Documents", _documents, 30),
)


def project_row(resident, columns: Sequence[Column]) -> "OrderedDict[str, str]":
    """Column header -> cell text, in column order."""
    row = OrderedDict()
    for column in columns:
        try:
            value = column.extract(resident)
        except (AttributeError, TypeError, ValueError):
            value = PLACEHOLDER
        row[column.header] = value if value else PLACEHOLDER
    return row


def build_workbook(rows: Iterable[dict], columns: Sequence[Column], sheet_name: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="0A400C", end_color="0A400C", fill_type="solid")

    ws.append([c.header for c in columns])
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill

    for row in rows:
        ws.append([row.get(c.header, PLACEHOLDER) for c in columns])

    for idx, column in enumerate(columns, 1):
        ws.column_dimensions[get_column_letter(idx)].width = column.width
    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def residents_workbook(residents: List, columns: Sequence[Column], sheet_name: str) -> bytes:
    return build_workbook((project_row(r, columns) for r in residents), columns, sheet_name)
