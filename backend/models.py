"""
SQLAlchemy models for the Gharpan admin portal

Residents keep their address and care events embedded (JSON columns), the
way the portal has always stored them. Documents live in their own table
and are owned by exactly one resident.
"""

import secrets
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Date, DateTime, Float, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from database import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
EmbeddedJSON = JSON().with_variant(JSONB(), "postgresql")

DOCUMENT_TYPES = (
    'medical',
    'police_verification',
    'identity_proof',
    'address_proof',
    'court_documents',
    'certificates',
    'legal_documents',
    'other',
)

GENDERS = ('Male', 'Female', 'Other')
CATEGORIES = ('Other', 'Emergency', 'Routine')
PRIORITY_LEVELS = ('Low', 'Normal', 'High', 'Critical', 'Emergency')
ADMISSION_STATUSES = ('Active', 'Pending', 'Discharged', 'Transferred', 'On Leave', 'Absconded')


def new_object_id() -> str:
    """24 lowercase hex characters, same shape as the ids the portal has always used."""
    return secrets.token_hex(12)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# RESIDENTS
# =============================================================================

class Resident(Base):
    """A person registered with the care facility"""
    __tablename__ = "residents"

    id = Column(String(24), primary_key=True, default=new_object_id)
    registration_no = Column(String(40), unique=True, nullable=False, index=True)
    admission_date = Column(DateTime(timezone=True), default=utcnow)

    # Identity
    name = Column(String(200), index=True)
    name_given_by_organization = Column(String(200))
    date_of_birth = Column(Date)
    gender = Column(String(10))                 # Male, Female, Other
    age = Column(Integer)
    weight = Column(Float)
    height = Column(Float)
    religion = Column(String(100))
    identification_mark = Column(Text)
    category = Column(String(20), default='Other')

    # Address (state, district, country, full_address, city, pincode, latitude, longitude)
    address = Column(EmbeddedJSON, default=dict)
    alternative_address = Column(Text)
    nearest_landmark = Column(String(200))
    distance_from_facility = Column(Float)

    # Guardian / relatives
    relative_admit = Column(String(200))
    relation_with = Column(String(100))
    guardian_name = Column(String(200))

    # Contact
    mobile_no = Column(String(20))
    phone_number = Column(String(20))
    alternative_contact = Column(String(20))
    email_address = Column(String(255))
    social_media_handle = Column(String(200))
    voter_id = Column(String(50))
    aadhaar_number = Column(String(20))

    # Emergency contact
    emergency_contact_name = Column(String(200))
    emergency_contact_number = Column(String(20))
    emergency_contact_relationship = Column(String(100))

    # Health
    health_status = Column(String(100))
    blood_group = Column(String(10))
    allergies = Column(Text)
    known_allergies = Column(Text)
    medical_conditions = Column(Text)
    disability_status = Column(String(100), default='None')
    disability_details = Column(Text)
    medications = Column(Text)
    rehab_status = Column(String(100))
    body_temperature = Column(Float)
    heart_rate = Column(Integer)
    respiratory_rate = Column(Integer)
    blood_pressure = Column(String(20))
    primary_doctor = Column(String(200))
    preferred_hospital = Column(String(200))
    medical_history = Column(Text)
    medical_history_notes = Column(Text)

    # Notes
    comments = Column(Text)
    general_comments = Column(Text)
    medical_notes = Column(Text)
    behavioral_notes = Column(Text)
    care_instructions = Column(Text)
    priority_level = Column(String(20), default='Normal')
    update_summary = Column(Text)
    updated_by = Column(String(200))
    last_update_date = Column(DateTime(timezone=True))

    # Informer
    informer_name = Column(String(200))
    informer_mobile = Column(String(20))
    informer_relationship = Column(String(100))
    information_date = Column(DateTime(timezone=True))
    informer_address = Column(Text)
    information_details = Column(Text)

    # Transport
    conveyance_vehicle_no = Column(String(30))
    pick_up_place = Column(String(200))
    pick_up_time = Column(DateTime(timezone=True))
    entrant_name = Column(String(200))
    driver_name = Column(String(200))
    driver_mobile = Column(String(20))
    transport_time = Column(String(50))
    transport_notes = Column(Text)

    # Administrative
    admitted_by = Column(String(200))
    organization_id = Column(String(100))
    admission_status = Column(String(20), default='Active')
    ward = Column(String(100))
    receipt_no = Column(String(100))
    letter_no = Column(String(100))

    # Financial
    item_description = Column(Text)
    item_amount = Column(Float, default=0)

    # Media (blob store URLs)
    video_url = Column(Text)
    photo_before_admission = Column(Text)
    photo_after_admission = Column(Text)
    photo_url = Column(Text)                    # Legacy single photo

    # Care tracking (list of dicts, see schemas.CareEventCreate)
    care_events = Column(EmbeddedJSON, default=list)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    documents = relationship(
        "Document",
        back_populates="resident",
        order_by="Document.uploaded_at",
    )

    @property
    def display_name(self):
        return self.name_given_by_organization or self.name or 'N/A'

    @property
    def primary_photo(self):
        return self.photo_after_admission or self.photo_before_admission or self.photo_url or None


# =============================================================================
# DOCUMENTS
# =============================================================================

class Document(Base):
    """An uploaded file stored in the blob store, referenced by URL"""
    __tablename__ = "documents"

    id = Column(String(24), primary_key=True, default=new_object_id)
    resident_id = Column(String(24), ForeignKey("residents.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(40), nullable=False)   # One of DOCUMENT_TYPES
    file_path = Column(Text, nullable=False)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)

    resident = relationship("Resident", back_populates="documents")


# =============================================================================
# SETTINGS
# =============================================================================

class Setting(Base):
    """Key/value settings grouped by category (branding overrides live here)"""
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    category = Column(String(50), nullable=False)
    key = Column(String(100), nullable=False)
    value = Column(Text)
