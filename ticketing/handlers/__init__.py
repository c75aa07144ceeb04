from ticketing.handlers.views import (
    AdminBookingDetailView,
    AdminBookingListView,
    AdminStatsView,
    BookingDetailView,
    BookingListView,
    EventDetailView,
    PaymentProofUploadView,
    TierAvailabilityView,
    TierDetailView,
    TierListView,
)

__all__ = [
    "AdminBookingDetailView",
    "AdminBookingListView",
    "AdminStatsView",
    "BookingDetailView",
    "BookingListView",
    "EventDetailView",
    "PaymentProofUploadView",
    "TierAvailabilityView",
    "TierDetailView",
    "TierListView",
]
