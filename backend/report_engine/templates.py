"""
Report Templates

Each template is a declarative list of sections; one shared loop in
renderers.ReportRenderer interprets them. Sections must appear in the domain
order below. Photos, documents and care events are special blocks whose
content comes from remote assets or embedded lists rather than a single
field.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from .formatting import (
    PLACEHOLDER, display, format_date, format_datetime, join_names,
)
from .layout import Spacing, DEFAULT_SPACING, COMPACT_SPACING

SECTION_ORDER = (
    'photos',
    'personal',
    'contact',
    'address',
    'guardian',
    'emergency',
    'health',
    'medical',
    'informer',
    'transport',
    'administrative',
    'financial',
    'notes',
    'update_tracking',
    'media',
    'documents',
    'care_events',
)

Source = Union[str, Callable[[Any], Any]]


class UnsupportedTemplate(ValueError):
    def __init__(self, name):
        super().__init__(f"Invalid template '{name}'. Use one of: {', '.join(TEMPLATE_NAMES)}")
        self.name = name


# =============================================================================
# TEMPLATE ITEMS
# =============================================================================

@dataclass(frozen=True)
class Field:
    """
    One labeled value.

    source is a resident field name, a dotted address path
    ("address.city"), or a callable taking the resident snapshot.
    """
    label: str
    source: Source
    multiline: bool = False
    full_width: bool = False
    fmt: Callable[[Any], str] = display
    when: Optional[Callable[[Any], bool]] = None

    def value(self, resident) -> str:
        if callable(self.source):
            raw = self.source(resident)
        elif self.source.startswith('address.'):
            raw = resident.address_part(self.source.split('.', 1)[1])
        else:
            raw = resident.get(self.source)
        return self.fmt(raw)


@dataclass(frozen=True)
class FieldPair:
    left: Field
    right: Field


@dataclass(frozen=True)
class Block:
    """Placeholder for content the renderer assembles itself."""
    kind: str


PHOTOS = Block('photos')
DOCUMENTS = Block('documents')
CARE_EVENTS = Block('care_events')


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    items: Tuple[Union[Field, FieldPair, Block], ...]
    when: Optional[Callable[[Any], bool]] = None


@dataclass(frozen=True)
class TemplateSpec:
    name: str
    title: str
    subject: str
    sections: Tuple[Section, ...]
    spacing: Spacing = DEFAULT_SPACING
    generated_label: str = "Generated"

    def __post_init__(self):
        positions = [SECTION_ORDER.index(s.id) for s in self.sections]
        if positions != sorted(positions):
            raise ValueError(f"Template '{self.name}' sections out of domain order")


def pair(label_a, source_a, label_b, source_b, fmt_a=display, fmt_b=display) -> FieldPair:
    return FieldPair(Field(label_a, source_a, fmt=fmt_a), Field(label_b, source_b, fmt=fmt_b))


def available(value) -> str:
    return "Available" if value else "Not Available"


def yes_no(value) -> str:
    return "Yes" if value else "No"


def document_names_or_none(resident) -> str:
    return join_names(resident.documents, empty="None")


def has_care_events(resident) -> bool:
    return bool(resident.care_events)


def _text(value) -> str:
    """Already-formatted strings pass through, blanks become N/A."""
    return value if value else PLACEHOLDER


# =============================================================================
# DETAILED
# =============================================================================

DETAILED = TemplateSpec(
    name='detailed',
    title='DETAILED REGISTRATION REPORT',
    subject='Detailed resident registration report',
    sections=(
        Section('photos', 'RESIDENT PHOTOS', (PHOTOS,)),
        Section('personal', 'PERSONAL INFORMATION', (
            pair("Full Name", 'name', "Organization Name", 'name_given_by_organization'),
            pair("Date of Birth", 'date_of_birth', "Gender", 'gender', fmt_a=format_date),
            pair("Age", 'age', "Religion", 'religion'),
            pair("Category", 'category', "Identification Mark", 'identification_mark'),
            pair("Voter ID", 'voter_id', "Aadhaar Number", 'aadhaar_number'),
        )),
        Section('contact', 'CONTACT INFORMATION', (
            pair("Mobile Number", 'mobile_no', "Phone Number", 'phone_number'),
            pair("Alternative Contact", 'alternative_contact', "Email Address", 'email_address'),
            Field("Social Media Handle", 'social_media_handle'),
        )),
        Section('address', 'ADDRESS INFORMATION', (
            Field("Full Address", 'address.full_address', multiline=True),
            pair("City", 'address.city', "District", 'address.district'),
            pair("State", 'address.state', "PIN Code", 'address.pincode'),
            pair("Country", 'address.country', "Nearest Landmark", 'nearest_landmark'),
            Field("Alternative Address", 'alternative_address', multiline=True),
            pair("Latitude", 'address.latitude', "Longitude", 'address.longitude'),
            Field("Distance from Facility (km)", 'distance_from_facility'),
        )),
        Section('guardian', 'GUARDIAN INFORMATION', (
            pair("Guardian Name", 'guardian_name', "Relation", 'relation_with'),
            Field("Admitted By Relative", 'relative_admit'),
        )),
        Section('emergency', 'EMERGENCY CONTACT', (
            pair("Contact Name", 'emergency_contact_name', "Contact Number", 'emergency_contact_number'),
            Field("Relationship", 'emergency_contact_relationship'),
        )),
        Section('health', 'HEALTH INFORMATION', (
            pair("Health Status", 'health_status', "Blood Group", 'blood_group'),
            pair("Weight (kg)", 'weight', "Height (cm)", 'height'),
            pair("Body Temperature (°C)", 'body_temperature', "Heart Rate (bpm)", 'heart_rate'),
            pair("Respiratory Rate", 'respiratory_rate', "Blood Pressure", 'blood_pressure'),
            pair("Disability Status", 'disability_status', "Disability Details", 'disability_details'),
        )),
        Section('medical', 'MEDICAL DETAILS', (
            Field("Medical Conditions", 'medical_conditions', multiline=True),
            Field("Allergies", 'allergies', multiline=True),
            Field("Known Allergies", 'known_allergies', multiline=True),
            Field("Current Medications", 'medications', multiline=True),
            pair("Primary Doctor", 'primary_doctor', "Preferred Hospital", 'preferred_hospital'),
            Field("Medical History", 'medical_history', multiline=True),
            Field("Medical History Notes", 'medical_history_notes', multiline=True),
        )),
        Section('informer', 'INFORMER INFORMATION', (
            pair("Informer Name", 'informer_name', "Informer Mobile", 'informer_mobile'),
            pair("Relationship", 'informer_relationship', "Information Date", 'information_date', fmt_b=format_date),
            Field("Informer Address", 'informer_address', multiline=True),
            Field("Information Details", 'information_details', multiline=True),
        )),
        Section('transport', 'TRANSPORT INFORMATION', (
            pair("Vehicle Number", 'conveyance_vehicle_no', "Driver Name", 'driver_name'),
            pair("Driver Mobile", 'driver_mobile', "Pick Up Place", 'pick_up_place'),
            pair("Pick Up Time", 'pick_up_time', "Transport Time", 'transport_time', fmt_a=format_datetime),
            Field("Entrant Name", 'entrant_name'),
            Field("Transport Notes", 'transport_notes', multiline=True),
        )),
        Section('administrative', 'ADMINISTRATIVE INFORMATION', (
            pair("Registration Number", 'registration_no', "Admission Date", 'admission_date', fmt_b=format_date),
            pair("Admission Status", 'admission_status', "Ward", 'ward'),
            pair("Rehabilitation Status", 'rehab_status', "Admitted By", 'admitted_by'),
            pair("Organization ID", 'organization_id', "Priority Level", 'priority_level'),
            pair("Receipt No", 'receipt_no', "Letter No", 'letter_no'),
        )),
        Section('financial', 'FINANCIAL INFORMATION', (
            Field("Item Description", 'item_description', multiline=True),
            Field("Item Amount (Rs)", 'item_amount'),
        )),
        Section('notes', 'NOTES AND COMMENTS', (
            Field("Comments", 'comments', multiline=True),
            Field("General Comments", 'general_comments', multiline=True),
            Field("Medical Notes", 'medical_notes', multiline=True),
            Field("Behavioral Notes", 'behavioral_notes', multiline=True),
            Field("Care Instructions", 'care_instructions', multiline=True),
        )),
        Section('update_tracking', 'UPDATE TRACKING', (
            Field("Update Summary", 'update_summary', multiline=True),
            pair("Updated By", 'updated_by', "Last Update Date", 'last_update_date', fmt_b=format_datetime),
            pair("Created At", 'created_at', "Updated At", 'updated_at',
                 fmt_a=format_datetime, fmt_b=format_datetime),
            Field("Is Active", 'is_active', fmt=yes_no),
        )),
        Section('media', 'MEDIA INFORMATION', (
            Field("Video URL", 'video_url', multiline=True),
            pair("Photo Before Admission", 'photo_before_admission',
                 "Photo After Admission", 'photo_after_admission',
                 fmt_a=available, fmt_b=available),
        )),
        Section('documents', 'DOCUMENTS', (DOCUMENTS,)),
        Section('care_events', 'CARE EVENTS HISTORY', (CARE_EVENTS,), when=has_care_events),
    ),
)


# =============================================================================
# SUMMARY / MEDICAL / PRINT
# =============================================================================

SUMMARY = TemplateSpec(
    name='summary',
    title='RESIDENT SUMMARY REPORT',
    subject='Resident summary report',
    sections=(
        Section('personal', 'ESSENTIAL INFORMATION', (
            Field("Name", 'name'),
            pair("Gender", 'gender', "Age", 'age'),
            Field("Health Status", 'health_status'),
            Field("Contact", 'mobile_no'),
            Field("Guardian", 'guardian_name'),
            Field("Documents", document_names_or_none, multiline=True, fmt=_text),
        )),
    ),
)

MEDICAL = TemplateSpec(
    name='medical',
    title='MEDICAL RECORD REPORT',
    subject='Resident medical record report',
    sections=(
        Section('health', 'HEALTH INFORMATION', (
            Field("Health Status", 'health_status'),
            pair("Blood Group", 'blood_group', "Weight (kg)", 'weight'),
            pair("Height (cm)", 'height', "Disability", 'disability_status'),
        )),
        Section('medical', 'MEDICAL CONDITIONS', (
            Field("Medical Conditions", 'medical_conditions', multiline=True),
            Field("Allergies", 'allergies', multiline=True),
            Field("Current Medications", 'medications', multiline=True),
            Field("Documents", document_names_or_none, multiline=True, fmt=_text),
        )),
    ),
)

PRINT = TemplateSpec(
    name='print',
    title='RESIDENT PRINT DOCUMENT',
    subject='Resident print document',
    spacing=COMPACT_SPACING,
    generated_label="Generated for Printing",
    sections=(
        Section('personal', 'PERSONAL INFO', (
            pair("Name", 'name', "DOB", 'date_of_birth', fmt_b=format_date),
            pair("Gender", 'gender', "Age", 'age'),
            pair("Religion", 'religion', "Category", 'category'),
        )),
        Section('contact', 'CONTACT', (
            pair("Mobile", 'mobile_no', "State", 'address.state'),
            pair("District", 'address.district', "Address", 'address.full_address'),
        )),
        Section('guardian', 'GUARDIAN', (
            pair("Guardian", 'guardian_name', "Relation", 'relation_with'),
            Field("Contact", 'emergency_contact_number'),
        )),
        Section('health', 'HEALTH', (
            pair("Status", 'health_status', "Blood Group", 'blood_group'),
            pair("Weight", 'weight', "Height", 'height'),
            Field("Medical Conditions", 'medical_conditions', multiline=True,
                  when=lambda r: bool(r.get('medical_conditions'))),
        )),
    ),
)

TEMPLATES = {t.name: t for t in (DETAILED, SUMMARY, MEDICAL, PRINT)}
TEMPLATE_NAMES = tuple(TEMPLATES)


def get_template(name: str) -> TemplateSpec:
    try:
        return TEMPLATES[name]
    except KeyError:
        raise UnsupportedTemplate(name) from None
