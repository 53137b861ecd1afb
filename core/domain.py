"""Catalog, availability and booking types exchanged with the Inventory Server."""
import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


# ── Catalog ────────────────────────────────────────────────────────────────────

class BookingType(str, Enum):
    DATE = "DATE"
    DATE_AND_TIME = "DATE_AND_TIME"


class ProductCategory(str, Enum):
    ACTIVITIES = "ACTIVITIES"
    ATTRACTIONS = "ATTRACTIONS"
    TOURS = "TOURS"
    TRANSPORT = "TRANSPORT"


class TicketSupport(str, Enum):
    TICKETS_NOT_REQUIRED = "TICKETS_NOT_REQUIRED"
    TICKET_PER_BOOKING = "TICKET_PER_BOOKING"
    TICKET_PER_PERSON = "TICKET_PER_PERSON"


class TicketType(str, Enum):
    QR_CODE = "QR_CODE"
    BARCODE = "BARCODE"


class MeetingType(str, Enum):
    MEET_ON_LOCATION = "MEET_ON_LOCATION"
    PICK_UP = "PICK_UP"
    MEET_ON_LOCATION_OR_PICK_UP = "MEET_ON_LOCATION_OR_PICK_UP"


class PricingCategory(BaseModel):
    id: str  # e.g. ADT; links passengers and prices to this category
    label: str


class Rate(BaseModel):
    id: str
    label: str


class OpeningHoursTimeInterval(BaseModel):
    open_from: str  # HH:MM
    open_for_hours: int = 0
    open_for_minutes: int = 0


class OpeningHoursWeekday(BaseModel):
    open_24_hours: bool = False
    time_intervals: List[OpeningHoursTimeInterval] = []


class OpeningHours(BaseModel):
    monday: Optional[OpeningHoursWeekday] = None
    tuesday: Optional[OpeningHoursWeekday] = None
    wednesday: Optional[OpeningHoursWeekday] = None
    thursday: Optional[OpeningHoursWeekday] = None
    friday: Optional[OpeningHoursWeekday] = None
    saturday: Optional[OpeningHoursWeekday] = None
    sunday: Optional[OpeningHoursWeekday] = None


class Extra(BaseModel):
    id: str
    title: str
    description: str = ""
    optional: bool = True
    max_per_booking: int = 1
    limit_by_pax: bool = False
    increases_capacity: bool = False


class BasicProductInfo(BaseModel):
    id: str
    name: str
    description: str = ""
    pricing_categories: List[PricingCategory] = []
    cities: List[str] = []
    countries: List[str] = []


class ProductDescription(BasicProductInfo):
    rates: List[Rate] = []
    booking_type: BookingType = BookingType.DATE_AND_TIME
    product_category: ProductCategory = ProductCategory.ACTIVITIES
    ticket_support: List[TicketSupport] = []
    ticket_type: TicketType = TicketType.QR_CODE
    meeting_type: MeetingType = MeetingType.MEET_ON_LOCATION
    start_times: List[dt.time] = []
    all_year_opening_hours: Optional[OpeningHours] = None
    extras: List[Extra] = []
    dropoff_available: bool = False

    def summary(self) -> BasicProductInfo:
        return BasicProductInfo.model_validate(self.model_dump(include=set(BasicProductInfo.model_fields)))


# ── Availability ───────────────────────────────────────────────────────────────

class DateRange(BaseModel):
    start: dt.date
    end: dt.date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("range end must not be before range start")
        return self


class Price(BaseModel):
    # Decimal string; currency arithmetic is the backend's job
    amount: str
    currency: str


class PricingCategoryWithPrice(BaseModel):
    pricing_category_id: str
    price: Price


class RateWithPrice(BaseModel):
    rate_id: str
    price_per_person: List[PricingCategoryWithPrice] = []


class AvailabilitySlot(BaseModel):
    date: dt.date
    time: Optional[dt.time] = None
    capacity: int
    rates: List[RateWithPrice] = []


class ProductsAvailabilityResult(BaseModel):
    product_id: str
    # False means the candidate was returned without asking the backend
    actual_check_done: bool


# ── Booking source ────────────────────────────────────────────────────────────

class SalesSegment(str, Enum):
    OTA = "OTA"
    MARKETPLACE = "MARKETPLACE"
    AGENT_AREA = "AGENT_AREA"
    DIRECT_OFFLINE = "DIRECT_OFFLINE"


class BookingChannel(BaseModel):
    id: str
    title: str = ""
    system_type: Optional[str] = None


class Company(BaseModel):
    id: str
    title: str = ""
    company_registration_number: Optional[str] = None


class ExtranetUser(BaseModel):
    email: str
    full_name: str = ""


_SEGMENT_PAYLOAD = {
    SalesSegment.MARKETPLACE: "marketplace_vendor",
    SalesSegment.AGENT_AREA: "booking_agent",
    SalesSegment.DIRECT_OFFLINE: "extranet_user",
}


class BookingSource(BaseModel):
    segment: SalesSegment
    booking_channel: BookingChannel
    marketplace_vendor: Optional[Company] = None
    booking_agent: Optional[Company] = None
    extranet_user: Optional[ExtranetUser] = None

    @model_validator(mode="after")
    def check_segment_payload(self) -> "BookingSource":
        if self.segment == SalesSegment.OTA:
            if not self.booking_channel.system_type:
                raise ValueError("OTA booking source requires booking_channel.system_type")
            return self
        field = _SEGMENT_PAYLOAD[self.segment]
        if getattr(self, field) is None:
            raise ValueError(f"{self.segment.value} booking source requires {field}")
        return self


# ── Reservations & bookings ───────────────────────────────────────────────────

class Passenger(BaseModel):
    pricing_category_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class Contact(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ReservationData(BaseModel):
    product_id: str
    rate_id: str
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    passengers: List[Passenger] = Field(min_length=1)
    booking_source: BookingSource


class BookingChanges(BaseModel):
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    rate_id: Optional[str] = None
    passengers: Optional[List[Passenger]] = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def check_not_empty(self) -> "BookingChanges":
        if not self.model_fields_set:
            raise ValueError("an amendment must change at least one field")
        return self


class Ticket(BaseModel):
    ticket_type: TicketType = TicketType.QR_CODE
    ticket_barcode: str


class TicketPerPricingCategory(BaseModel):
    pricing_category_id: str
    ticket: Ticket


class ReservationResult(BaseModel):
    reservation_confirmation_code: str
    expires_at: dt.datetime


class BookingResult(BaseModel):
    booking_confirmation_code: str
    tickets: List[TicketPerPricingCategory] = []
