"""
Resident record access

Read side of the record store used by the report engine and the routers:
id validation, snapshot loading with documents populated, filtered queries,
registration number generation, registration form field checks, autocomplete
and the dashboard counts.
"""

import copy
import logging
import re
import time
from collections import Counter
from datetime import date, datetime, time as dt_time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_, func
from sqlalchemy.orm import Session, selectinload

from models import Resident, Document, utcnow

logger = logging.getLogger(__name__)

OBJECT_ID_RE = re.compile(r'^[0-9a-fA-F]{24}$')


def is_valid_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(OBJECT_ID_RE.match(value))


# =============================================================================
# SERIALIZATION
# =============================================================================

def _plain(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def document_to_dict(doc: Document) -> dict:
    return {
        'id': doc.id,
        'resident_id': doc.resident_id,
        'name': doc.name,
        'type': doc.type,
        'file_path': doc.file_path,
        'mime_type': doc.mime_type,
        'size': doc.size,
        'uploaded_at': doc.uploaded_at,
    }


def resident_to_dict(resident: Resident, populate_documents: bool = True) -> dict:
    """Every column of the resident as a plain dict, optionally with documents resolved."""
    data = {c.name: getattr(resident, c.name) for c in Resident.__table__.columns}
    data['address'] = dict(resident.address or {})
    data['care_events'] = [dict(e) for e in (resident.care_events or [])]
    if populate_documents:
        data['documents'] = [document_to_dict(d) for d in resident.documents]
    return data


def to_json(data: dict) -> dict:
    """Dates to ISO strings for JSON responses."""
    out = {}
    for key, value in data.items():
        if isinstance(value, list):
            out[key] = [to_json(v) if isinstance(v, dict) else _plain(v) for v in value]
        elif isinstance(value, dict):
            out[key] = to_json(value)
        else:
            out[key] = _plain(value)
    return out


# =============================================================================
# SNAPSHOT
# =============================================================================

class ResidentSnapshot:
    """
    Read-only view of one resident for the duration of a render.

    Holds a private deep copy so nothing the renderer does can reach back
    into the session or the caller's dict.
    """

    def __init__(self, data: Dict[str, Any]):
        self._data = copy.deepcopy(dict(data))
        self._data.setdefault('address', {})
        self._data['address'] = self._data['address'] or {}
        self._data['documents'] = list(self._data.get('documents') or [])
        self._data['care_events'] = list(self._data.get('care_events') or [])

    @classmethod
    def from_model(cls, resident: Resident) -> 'ResidentSnapshot':
        return cls(resident_to_dict(resident, populate_documents=True))

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data.get(key, default)
        return copy.deepcopy(value) if isinstance(value, (dict, list)) else value

    def address_part(self, key: str) -> Any:
        return self._data['address'].get(key)

    @property
    def address(self) -> dict:
        return dict(self._data['address'])

    @property
    def documents(self) -> List[dict]:
        return [dict(d) for d in self._data['documents']]

    @property
    def care_events(self) -> List[dict]:
        return [dict(e) for e in self._data['care_events']]

    @property
    def display_name(self) -> str:
        return self._data.get('name_given_by_organization') or self._data.get('name') or 'N/A'

    @property
    def identifier(self) -> str:
        """Registration number, or the raw id when it has none"""
        return self._data.get('registration_no') or self._data.get('id') or ''

    def as_dict(self) -> dict:
        return copy.deepcopy(self._data)


def find_resident_by_id(db: Session, resident_id: str, populate_documents: bool = True) -> Optional[ResidentSnapshot]:
    """Load a resident snapshot, or None when the id does not resolve."""
    query = db.query(Resident)
    if populate_documents:
        query = query.options(selectinload(Resident.documents))
    resident = query.filter(Resident.id == resident_id).first()
    if not resident:
        return None
    return ResidentSnapshot(resident_to_dict(resident, populate_documents=populate_documents))


# =============================================================================
# FILTERED QUERIES
# =============================================================================

def build_resident_query(db: Session, filters):
    """
    Apply listing/export filters.

    Text filters are case-insensitive substring matches; gender and blood
    group are exact.
    """
    query = db.query(Resident)

    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.filter(or_(
            Resident.name.ilike(pattern),
            Resident.name_given_by_organization.ilike(pattern),
            Resident.registration_no.ilike(pattern),
            Resident.mobile_no.ilike(pattern),
        ))
    if filters.gender:
        query = query.filter(Resident.gender == filters.gender)
    if filters.health_status:
        query = query.filter(Resident.health_status.ilike(f"%{filters.health_status}%"))
    if filters.category:
        query = query.filter(Resident.category.ilike(f"%{filters.category}%"))
    if filters.blood_group:
        query = query.filter(Resident.blood_group == filters.blood_group)
    if filters.disability_status:
        query = query.filter(Resident.disability_status.ilike(f"%{filters.disability_status}%"))
    if filters.state:
        query = query.filter(Resident.address['state'].as_string().ilike(f"%{filters.state}%"))
    if filters.age_min is not None:
        query = query.filter(Resident.age >= filters.age_min)
    if filters.age_max is not None:
        query = query.filter(Resident.age <= filters.age_max)
    if filters.admission_date_start:
        query = query.filter(Resident.admission_date >= datetime.combine(filters.admission_date_start, dt_time.min))
    if filters.admission_date_end:
        query = query.filter(Resident.admission_date <= datetime.combine(filters.admission_date_end, dt_time.max))

    return query


def find_residents(db: Session, filters) -> List[ResidentSnapshot]:
    """All residents matching the filters, documents populated, newest admission first."""
    residents = (
        build_resident_query(db, filters)
        .options(selectinload(Resident.documents))
        .order_by(Resident.admission_date.desc())
        .all()
    )
    return [ResidentSnapshot.from_model(r) for r in residents]


# =============================================================================
# REGISTRATION NUMBERS
# =============================================================================

def generate_registration_no(db: Session) -> str:
    """REG-<year>-<count+1>, with a time suffix if that number is already taken."""
    count = db.query(func.count(Resident.id)).scalar() or 0
    year = datetime.now().year
    reg_no = f"REG-{year}-{count + 1:04d}"

    existing = db.query(Resident.id).filter(Resident.registration_no == reg_no).first()
    if existing:
        suffix = str(int(time.time() * 1000))[-4:]
        logger.info(f"Registration number {reg_no} taken, using suffix {suffix}")
        return f"{reg_no}-{suffix}"
    return reg_no


def calculate_age(date_of_birth: date, today: Optional[date] = None) -> int:
    today = today or date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


# =============================================================================
# FIELD CHECKS (registration form)
# =============================================================================

MOBILE_RE = re.compile(r'^[6-9]\d{9}$')
AADHAAR_RE = re.compile(r'^\d{12}$')
MAX_AGE = 120


def _verdict(is_valid: bool, message: str, suggestion: Optional[str] = None) -> dict:
    result = {'is_valid': is_valid, 'message': message}
    if suggestion:
        result['suggestion'] = suggestion
    return result


def find_active_conflict(db: Session, column, value, exclude_id: Optional[str] = None) -> Optional[Resident]:
    """Another active resident already holding this value"""
    query = db.query(Resident).filter(Resident.is_active == True, column == value)
    if exclude_id:
        query = query.filter(Resident.id != exclude_id)
    return query.first()


def suggest_registration_no(db: Session, value: str) -> str:
    """First free <value>-<n>"""
    n = 1
    while db.query(Resident.id).filter(Resident.registration_no == f"{value}-{n}").first():
        n += 1
    return f"{value}-{n}"


def _check_registration_no(db, value, exclude_id):
    if find_active_conflict(db, Resident.registration_no, value, exclude_id):
        return _verdict(False, "Registration number already exists", f"Try: {suggest_registration_no(db, value)}")
    return _verdict(True, "Registration number is available")


def _check_mobile_no(db, value, exclude_id):
    if not MOBILE_RE.match(value):
        return _verdict(False, "Invalid mobile number format", "Enter 10-digit number starting with 6-9")
    holder = find_active_conflict(db, Resident.mobile_no, value, exclude_id)
    if holder:
        return _verdict(False, "Mobile number already registered", f"Already used by: {holder.display_name}")
    return _verdict(True, "Mobile number is valid")


def _check_aadhaar_number(db, value, exclude_id):
    if not AADHAAR_RE.match(value):
        return _verdict(False, "Invalid Aadhaar number", "Enter 12 digits without spaces or dashes")
    return _verdict(True, "Aadhaar number format is valid")


def _check_age(db, value, exclude_id):
    try:
        age = int(value)
    except ValueError:
        age = None
    if age is None or not 0 <= age <= MAX_AGE:
        return _verdict(False, "Invalid age", f"Enter age between 0-{MAX_AGE} years")
    return _verdict(True, "Age is valid")


FIELD_CHECKS = {
    'registration_no': _check_registration_no,
    'mobile_no': _check_mobile_no,
    'aadhaar_number': _check_aadhaar_number,
    'age': _check_age,
}


def validate_field(db: Session, field: str, value: Any, exclude_id: Optional[str] = None) -> dict:
    """
    Check a single registration form field as it is filled in.

    Returns {field: {is_valid, message, suggestion?}}. Known fields with no
    value yield {}; fields without a check are always valid.
    """
    check = FIELD_CHECKS.get(field)
    if check is None:
        return {field: _verdict(True, "Field validated")}
    text_value = '' if value is None else str(value).strip()
    if not text_value:
        return {}
    return {field: check(db, text_value, exclude_id)}


# =============================================================================
# AUTOCOMPLETE
# =============================================================================

AUTOCOMPLETE_FIELDS = ('guardian_name', 'address.district', 'address.state', 'health_status', 'category')


def _autocomplete_column(field: str):
    if field.startswith('address.'):
        return Resident.address[field.split('.', 1)[1]].as_string()
    return getattr(Resident, field)


def distinct_values(db: Session, field: str, q: str = '', limit: int = 10) -> List[str]:
    """Distinct non-blank values of a field among active residents, matched case-insensitively"""
    if field not in AUTOCOMPLETE_FIELDS:
        return []
    column = _autocomplete_column(field)
    value = column.label('value')
    query = db.query(value).filter(
        Resident.is_active == True,
        column.isnot(None),
        func.trim(column) != '',
    )
    if q:
        query = query.filter(column.ilike(f"%{q}%"))
    rows = query.distinct().order_by(value).limit(limit).all()
    return [row.value for row in rows]


# =============================================================================
# DASHBOARD QUERIES
# =============================================================================

HEALTH_CONCERN_TERMS = ('critical', 'serious', 'emergency', 'poor')
SEVERE_DISABILITY_TERMS = ('severe', 'critical')
NEEDS_ATTENTION_TERMS = ('poor', 'critical')

QUICK_FILTERS = ('recent', 'this_month', 'health_concerns', 'needs_attention', 'rehabilitation')

AGE_BUCKETS = (('0-17', 18), ('18-29', 30), ('30-49', 50), ('50-64', 65), ('65+', None))


def _contains_any(column, terms):
    return or_(*[column.ilike(f"%{term}%") for term in terms])


def _blank(column):
    return or_(column.is_(None), column == '')


def _filled(column):
    return and_(column.isnot(None), column != '')


def health_concern_clause():
    """Health status or disability wording that needs a closer look"""
    return or_(
        _contains_any(Resident.health_status, HEALTH_CONCERN_TERMS),
        _contains_any(Resident.disability_status, SEVERE_DISABILITY_TERMS),
    )


def incomplete_record_clause():
    return or_(_blank(Resident.mobile_no), _blank(Resident.guardian_name), _blank(Resident.health_status))


def created_since(days: int, now: Optional[datetime] = None):
    return Resident.created_at >= (now or utcnow()) - timedelta(days=days)


def count_active(db: Session, *criteria) -> int:
    return db.query(func.count(Resident.id)).filter(Resident.is_active == True, *criteria).scalar() or 0


def quick_filter_clause(name: str, now: Optional[datetime] = None):
    if name == 'recent':
        return created_since(7, now)
    if name == 'this_month':
        return created_since(30, now)
    if name == 'health_concerns':
        return health_concern_clause()
    if name == 'needs_attention':
        return or_(_contains_any(Resident.health_status, NEEDS_ATTENTION_TERMS), _filled(Resident.medications))
    if name == 'rehabilitation':
        return _filled(Resident.rehab_status)
    raise ValueError(f"Unknown quick filter: {name}")


def build_smart_search_query(db: Session, q: Optional[str] = None, quick_filter: Optional[str] = None,
                             now: Optional[datetime] = None):
    """
    Active residents matching free text and an optional quick filter.

    The whole term is matched against names, registration number, district,
    state, mobile and guardian; each word is also matched on its own against
    the names and the full address.
    """
    query = db.query(Resident).filter(Resident.is_active == True)

    term = (q or '').strip()
    if term:
        pattern = f"%{term}%"
        full_address = Resident.address['full_address'].as_string()
        clauses = [
            Resident.name.ilike(pattern),
            Resident.name_given_by_organization.ilike(pattern),
            Resident.registration_no.ilike(pattern),
            Resident.address['district'].as_string().ilike(pattern),
            Resident.address['state'].as_string().ilike(pattern),
            Resident.mobile_no.ilike(pattern),
            Resident.guardian_name.ilike(pattern),
        ]
        for word in term.split():
            word_pattern = f"%{word}%"
            clauses += [
                Resident.name.ilike(word_pattern),
                Resident.name_given_by_organization.ilike(word_pattern),
                full_address.ilike(word_pattern),
            ]
        query = query.filter(or_(*clauses))

    if quick_filter:
        query = query.filter(quick_filter_clause(quick_filter, now))

    return query


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    index = moment.year * 12 + moment.month - 1 - months_back
    return moment.replace(year=index // 12, month=index % 12 + 1, day=1,
                          hour=0, minute=0, second=0, microsecond=0)


def age_bucket(age: int) -> str:
    for label, upper in AGE_BUCKETS:
        if upper is None or age < upper:
            return label


def age_distribution(db: Session) -> Dict[str, int]:
    """Active residents with a known age per bucket, every bucket present"""
    counts = dict.fromkeys((label for label, _ in AGE_BUCKETS), 0)
    ages = db.query(Resident.age).filter(Resident.is_active == True, Resident.age.isnot(None))
    for (age,) in ages:
        counts[age_bucket(age)] += 1
    return counts


def monthly_registrations(db: Session, months: int = 6, now: Optional[datetime] = None) -> Dict[str, int]:
    """Active registrations per YYYY-MM for the last `months` months, current month included"""
    now = now or utcnow()
    keys = [month_start(now, back).strftime('%Y-%m') for back in range(months - 1, -1, -1)]
    counts = dict.fromkeys(keys, 0)
    created = db.query(Resident.created_at).filter(
        Resident.is_active == True,
        Resident.created_at >= month_start(now, months - 1),
    )
    for (created_at,) in created:
        key = created_at.strftime('%Y-%m')
        if key in counts:
            counts[key] += 1
    return counts


def state_counts(db: Session, limit: int = 10) -> List[tuple]:
    """Most common address states among active residents"""
    state = Resident.address['state'].as_string()
    rows = db.query(state).filter(Resident.is_active == True, state.isnot(None), state != '')
    return Counter(value for (value,) in rows).most_common(limit)
