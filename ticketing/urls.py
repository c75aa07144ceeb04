from django.urls import path

from ticketing.handlers import (
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

urlpatterns = [
    path("event", EventDetailView.as_view(), name="event-detail"),
    path("tiers", TierListView.as_view(), name="tier-list"),
    path("tiers/<str:tier_id>", TierDetailView.as_view(), name="tier-detail"),
    path(
        "tiers/<str:tier_id>/availability",
        TierAvailabilityView.as_view(),
        name="tier-availability",
    ),
    path(
        "uploads/payment-proof",
        PaymentProofUploadView.as_view(),
        name="payment-proof-upload",
    ),
    path("bookings", BookingListView.as_view(), name="booking-list"),
    path("bookings/<str:booking_id>", BookingDetailView.as_view(), name="booking-detail"),
    path("admin/bookings", AdminBookingListView.as_view(), name="admin-booking-list"),
    path(
        "admin/bookings/<str:booking_id>",
        AdminBookingDetailView.as_view(),
        name="admin-booking-detail",
    ),
    path("admin/stats", AdminStatsView.as_view(), name="admin-stats"),
]
