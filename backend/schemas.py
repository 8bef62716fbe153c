"""
Resident, Document and Care Event Pydantic Schemas

Field names match the database columns. Everything on a resident is
optional except what the registration desk always fills in.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, Optional, Literal
from datetime import date, datetime

from models import GENDERS, CATEGORIES, PRIORITY_LEVELS, ADMISSION_STATUSES

PHONE_PATTERN = r'^\d{10}$'


# =============================================================================
# EMBEDDED STRUCTURES
# =============================================================================

class Address(BaseModel):
    """Embedded resident address"""
    state: Optional[str] = None
    district: Optional[str] = None
    country: Optional[str] = 'India'
    full_address: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = Field(default=None, pattern=r'^\d{6}$')
    latitude: Optional[float] = None
    longitude: Optional[float] = None


# =============================================================================
# RESIDENT CRUD SCHEMAS
# =============================================================================

class ResidentBase(BaseModel):
    admission_date: Optional[datetime] = None

    # Identity
    name: Optional[str] = None
    name_given_by_organization: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Literal[GENDERS]] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    weight: Optional[float] = Field(default=None, ge=0)
    height: Optional[float] = Field(default=None, ge=0)
    religion: Optional[str] = None
    identification_mark: Optional[str] = None
    category: Optional[Literal[CATEGORIES]] = None

    # Address
    address: Optional[Address] = None
    alternative_address: Optional[str] = None
    nearest_landmark: Optional[str] = None
    distance_from_facility: Optional[float] = Field(default=None, ge=0)

    # Guardian
    relative_admit: Optional[str] = None
    relation_with: Optional[str] = None
    guardian_name: Optional[str] = None

    # Contact
    mobile_no: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    phone_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    alternative_contact: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email_address: Optional[str] = Field(default=None, pattern=r'^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$')
    social_media_handle: Optional[str] = None
    voter_id: Optional[str] = None
    aadhaar_number: Optional[str] = Field(default=None, pattern=r'^\d{12}$')

    # Emergency contact
    emergency_contact_name: Optional[str] = None
    emergency_contact_number: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    emergency_contact_relationship: Optional[str] = None

    # Health
    health_status: Optional[str] = None
    blood_group: Optional[str] = None
    allergies: Optional[str] = None
    known_allergies: Optional[str] = None
    medical_conditions: Optional[str] = None
    disability_status: Optional[str] = None
    disability_details: Optional[str] = None
    medications: Optional[str] = None
    rehab_status: Optional[str] = None
    body_temperature: Optional[float] = Field(default=None, ge=30, le=45)
    heart_rate: Optional[int] = Field(default=None, ge=30, le=200)
    respiratory_rate: Optional[int] = Field(default=None, ge=5, le=40)
    blood_pressure: Optional[str] = None
    primary_doctor: Optional[str] = None
    preferred_hospital: Optional[str] = None
    medical_history: Optional[str] = None
    medical_history_notes: Optional[str] = None

    # Notes
    comments: Optional[str] = None
    general_comments: Optional[str] = None
    medical_notes: Optional[str] = None
    behavioral_notes: Optional[str] = None
    care_instructions: Optional[str] = None
    priority_level: Optional[Literal[PRIORITY_LEVELS]] = None
    update_summary: Optional[str] = None
    updated_by: Optional[str] = None
    last_update_date: Optional[datetime] = None

    # Informer
    informer_name: Optional[str] = None
    informer_mobile: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    informer_relationship: Optional[str] = None
    information_date: Optional[datetime] = None
    informer_address: Optional[str] = None
    information_details: Optional[str] = None

    # Transport
    conveyance_vehicle_no: Optional[str] = None
    pick_up_place: Optional[str] = None
    pick_up_time: Optional[datetime] = None
    entrant_name: Optional[str] = None
    driver_name: Optional[str] = None
    driver_mobile: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    transport_time: Optional[str] = None
    transport_notes: Optional[str] = None

    # Administrative
    admitted_by: Optional[str] = None
    organization_id: Optional[str] = None
    admission_status: Optional[Literal[ADMISSION_STATUSES]] = None
    ward: Optional[str] = None
    receipt_no: Optional[str] = None
    letter_no: Optional[str] = None

    # Financial
    item_description: Optional[str] = None
    item_amount: Optional[float] = Field(default=None, ge=0)

    # Media
    video_url: Optional[str] = Field(default=None, pattern=r'^https?://.+')
    photo_before_admission: Optional[str] = None
    photo_after_admission: Optional[str] = None
    photo_url: Optional[str] = None

    is_active: Optional[bool] = None

    @field_validator('conveyance_vehicle_no')
    @classmethod
    def _upper_vehicle_no(cls, v):
        return v.strip().upper() if v else v

    @field_validator('email_address')
    @classmethod
    def _lower_email(cls, v):
        return v.strip().lower() if v else v


class ResidentCreate(ResidentBase):
    """Create new resident - registration number is generated when omitted"""
    registration_no: Optional[str] = None


class ResidentUpdate(ResidentBase):
    """Partial update - only fields sent are written"""
    registration_no: Optional[str] = None


# =============================================================================
# DOCUMENTS
# =============================================================================

class DocumentCreate(BaseModel):
    """Register a file that has already been stored in the blob store"""
    resident_id: str
    name: str = Field(min_length=1)
    type: str
    file_path: str = Field(min_length=1)
    mime_type: str = Field(min_length=1)
    size: int = Field(ge=0)


# =============================================================================
# CARE EVENTS
# =============================================================================

class CareEventCreate(BaseModel):
    type: str = Field(default='General Care', min_length=1)
    description: str = Field(min_length=1, max_length=1000)
    date: datetime
    doctor: Optional[str] = Field(default=None, max_length=200)
    medications: Optional[str] = Field(default=None, max_length=500)
    next_visit: Optional[datetime] = None
    status: Optional[str] = Field(default='Completed', max_length=100)
    remarks: Optional[str] = Field(default=None, max_length=500)
    created_by: Optional[str] = None


class CareEventUpdate(BaseModel):
    type: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    date: Optional[datetime] = None
    doctor: Optional[str] = Field(default=None, max_length=200)
    medications: Optional[str] = Field(default=None, max_length=500)
    next_visit: Optional[datetime] = None
    status: Optional[str] = Field(default=None, max_length=100)
    remarks: Optional[str] = Field(default=None, max_length=500)


class ResidentFilters(BaseModel):
    """Query filters shared by the listing and bulk export endpoints"""
    search: Optional[str] = None
    gender: Optional[str] = None
    health_status: Optional[str] = None
    category: Optional[str] = None
    blood_group: Optional[str] = None
    state: Optional[str] = None
    disability_status: Optional[str] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    admission_date_start: Optional[date] = None
    admission_date_end: Optional[date] = None


class FieldValidationRequest(BaseModel):
    """One registration form field to check; context may carry the resident being edited"""
    field: str = Field(min_length=1)
    value: Optional[Any] = None
    context: Optional[dict] = None
