"""Demonstration catalog served by the mock backend."""
import datetime as dt

from core.domain import (
    BookingType,
    Extra,
    MeetingType,
    OpeningHours,
    OpeningHoursTimeInterval,
    OpeningHoursWeekday,
    PricingCategory,
    ProductCategory,
    ProductDescription,
    Rate,
    TicketSupport,
    TicketType,
)

ADULT = PricingCategory(id="ADT", label="Adult")
CHILD = PricingCategory(id="CHD", label="Child")

SLOT_CAPACITY = 10
CURRENCY = "EUR"

# product id -> pricing category id -> amount
PRICES = {
    "P1": {"ADT": "100", "CHD": "10"},
    "P2": {"ADT": "45.50", "CHD": "20"},
}

_WEEKDAY_HOURS = OpeningHoursWeekday(
    open_24_hours=False,
    time_intervals=[
        OpeningHoursTimeInterval(open_from="08:00", open_for_hours=4),
        OpeningHoursTimeInterval(open_from="13:00", open_for_hours=4),
    ],
)

PRODUCTS = {
    "P1": ProductDescription(
        id="P1",
        name="London Walking Tour",
        description="Three hours through the City and along the South Bank.",
        pricing_categories=[ADULT, CHILD],
        cities=["London"],
        countries=["GB"],
        rates=[Rate(id="standard", label="Standard"), Rate(id="private", label="Private group")],
        booking_type=BookingType.DATE_AND_TIME,
        product_category=ProductCategory.ACTIVITIES,
        ticket_support=[TicketSupport.TICKET_PER_PERSON],
        ticket_type=TicketType.QR_CODE,
        meeting_type=MeetingType.MEET_ON_LOCATION,
        start_times=[dt.time(8, 15), dt.time(9, 0), dt.time(12, 0)],
        all_year_opening_hours=OpeningHours(monday=_WEEKDAY_HOURS, friday=_WEEKDAY_HOURS),
        extras=[
            Extra(
                id="guidebook",
                title="Printed guidebook",
                description="Pocket guide handed out at the meeting point",
                optional=True,
                max_per_booking=1,
            )
        ],
        dropoff_available=False,
    ),
    "P2": ProductDescription(
        id="P2",
        name="Vilnius Old Town Bike Ride",
        description="Full-day bike rental with a route map of the Old Town.",
        pricing_categories=[ADULT, CHILD],
        cities=["Vilnius"],
        countries=["LT"],
        rates=[Rate(id="standard", label="Standard")],
        booking_type=BookingType.DATE,
        product_category=ProductCategory.TRANSPORT,
        ticket_support=[TicketSupport.TICKET_PER_BOOKING],
        ticket_type=TicketType.QR_CODE,
        meeting_type=MeetingType.MEET_ON_LOCATION_OR_PICK_UP,
        dropoff_available=True,
    ),
}
