"""
Portfolio Records
Author: Bryce Fountain | Skoll.dev

Dataclasses for properties, units, loans, tenants, contacts and bookings.
Every record converts to and from plain dicts so the whole portfolio can be
saved as JSON.
"""
import uuid
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import List, Optional


class HouseType(Enum):
    DETACHED = "Detached House"
    SEMI_DETACHED = "Semi-Detached House"
    APARTMENT_BLOCK = "Apartment Block"
    CONDO = "Condominium"


class UnitType(Enum):
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"


class MeterType(Enum):
    ELECTRICITY = "Electricity"
    GAS = "Gas"
    WATER = "Water"


class ReminderCategory(Enum):
    METER = "Meter Reading"
    HANDYMAN = "Handyman Appointment"
    TAX = "Tax Return"
    LOAN_EXPIRY = "Loan Expiry"
    OTHER = "Other"


class TransactionType(Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


class AllocationKey(Enum):
    """How a shared building cost is split across units."""
    AREA = "m2"
    UNIT = "unit"


def new_id(prefix: str = "") -> str:
    """Return a short unique record id, optionally prefixed (e.g. 'u', 'l')."""
    return f"{prefix}{uuid.uuid4().hex[:10]}"


def _plain(value):
    """Convert enums nested in asdict() output to their string values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


class Record:
    """Mixin with dict conversion for the dataclasses below."""

    # field name -> callable turning the stored value back into its type
    _converters = {}

    def to_dict(self) -> dict:
        return _plain(asdict(self))

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                continue
            converter = cls._converters.get(key)
            kwargs[key] = converter(value) if converter and value is not None else value
        return cls(**kwargs)


def _list_of(record_cls):
    return lambda items: [record_cls.from_dict(item) for item in items]


# -----------------------------------------------------------------------------
# Property building blocks
# -----------------------------------------------------------------------------
@dataclass
class Template(Record):
    id: str
    name: str
    subject: str
    content: str


@dataclass
class Reminder(Record):
    id: str
    title: str
    date: str
    category: ReminderCategory = ReminderCategory.OTHER
    is_done: bool = False
    property_id: Optional[str] = None
    recipient_email: Optional[str] = None

    _converters = {"category": ReminderCategory}


@dataclass
class MarketData(Record):
    average_rent_per_m2: float
    average_sale_per_m2: float
    market_trend: str  # rising | stable | falling
    summary: str
    sources: List[dict] = field(default_factory=list)


@dataclass
class MeterReading(Record):
    id: str
    type: MeterType
    value: float
    unit: str
    date: str
    serial_number: str = ""
    image_url: Optional[str] = None

    _converters = {"type": MeterType}


@dataclass
class ContractAnalysis(Record):
    summary: str
    unusual_clauses: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    lease_start: Optional[str] = None
    lease_end: Optional[str] = None
    rent_amount: Optional[str] = None
    notice_period: Optional[str] = None


@dataclass
class PropertyDocument(Record):
    id: str
    name: str
    category: str
    upload_date: str
    file_size: str
    file_data: str  # base64 data URL
    mime_type: str
    analysis: Optional[ContractAnalysis] = None

    _converters = {"analysis": ContractAnalysis.from_dict}


@dataclass
class Unit(Record):
    id: str
    number: str
    type: UnitType = UnitType.RESIDENTIAL
    size: float = 0.0
    base_rent: float = 0.0
    utility_prepayment: float = 0.0
    rooms: Optional[float] = None
    floor: Optional[str] = None
    tenant_id: Optional[str] = None
    image_url: Optional[str] = None
    is_vat_subject: bool = False
    documents: List[PropertyDocument] = field(default_factory=list)
    meter_readings: List[MeterReading] = field(default_factory=list)

    _converters = {
        "type": UnitType,
        "documents": _list_of(PropertyDocument),
        "meter_readings": _list_of(MeterReading),
    }

    @property
    def warm_rent(self) -> float:
        """Monthly rent including the utility prepayment."""
        return self.base_rent + self.utility_prepayment


@dataclass
class Loan(Record):
    id: str
    bank_name: str
    total_amount: float = 0.0
    current_balance: float = 0.0
    interest_rate: float = 0.0  # percent p.a.
    repayment_rate: float = 0.0  # initial repayment, percent p.a.
    fixed_until: str = ""  # ISO date, end of the fixed-rate period
    monthly_installment: float = 0.0


@dataclass
class Property(Record):
    id: str
    name: str
    address: str
    type: HouseType = HouseType.APARTMENT_BLOCK
    owner_id: Optional[str] = None
    year_built: Optional[int] = None
    plot_size: Optional[float] = None
    living_space: Optional[float] = None
    heating_type: Optional[str] = None
    energy_class: Optional[str] = None
    purchase_price: Optional[float] = None
    purchase_date: Optional[str] = None
    ancillary_costs: Optional[float] = None
    units: List[Unit] = field(default_factory=list)
    loans: List[Loan] = field(default_factory=list)
    documents: List[PropertyDocument] = field(default_factory=list)
    meter_readings: List[MeterReading] = field(default_factory=list)
    market_analysis: Optional[MarketData] = None

    _converters = {
        "type": HouseType,
        "units": _list_of(Unit),
        "loans": _list_of(Loan),
        "documents": _list_of(PropertyDocument),
        "meter_readings": _list_of(MeterReading),
        "market_analysis": MarketData.from_dict,
    }

    def total_unit_area(self) -> float:
        return sum(unit.size for unit in self.units)

    def unit_count(self) -> int:
        return len(self.units)

    def find_unit(self, unit_id: str) -> Optional[Unit]:
        return next((unit for unit in self.units if unit.id == unit_id), None)


# -----------------------------------------------------------------------------
# People & bookings
# -----------------------------------------------------------------------------
@dataclass
class Tenant(Record):
    id: str
    first_name: str
    last_name: str
    email: str = ""
    phone: str = ""
    start_date: str = ""

    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Transaction(Record):
    id: str
    property_id: str
    type: TransactionType
    category: str
    amount: float
    date: str
    description: str = ""
    unit_id: Optional[str] = None
    is_utility_relevant: bool = False

    _converters = {"type": TransactionType}


@dataclass
class Handyman(Record):
    id: str
    name: str
    trade: str
    phone: str = ""
    email: str = ""
    company: Optional[str] = None
    address: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None


@dataclass
class Owner(Record):
    id: str
    name: str
    email: str
    phone: str = ""
    address: str = ""
    zip: str = ""
    city: str = ""
    company: Optional[str] = None
    tax_id: Optional[str] = None
    vat_id: Optional[str] = None
    bank_name: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None

    def display_name(self) -> str:
        return self.company or self.name


@dataclass
class Stakeholder(Record):
    id: str
    name: str
    role: str
    email: str = ""
    phone: str = ""
    address: Optional[str] = None
    note: Optional[str] = None
