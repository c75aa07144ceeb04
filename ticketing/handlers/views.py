"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

from django.conf import settings
from django.core.cache import cache
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ticketing import services
from ticketing.domain import Money
from ticketing.domain.errors import DomainError, ErrorCode
from ticketing.handlers.serializers import (
    AvailabilitySerializer,
    BookingSerializer,
    BookingSummarySerializer,
    CreateBookingSerializer,
    CreateTierSerializer,
    EventSerializer,
    PaymentProofSerializer,
    ResizeTierSerializer,
    SetStatusSerializer,
    TierSalesSerializer,
    TierSerializer,
    UpdateEventSerializer,
    UpdateTierSerializer,
)

EVENT_CACHE_KEY = "ticketing:event"

_STATUS_FOR_CODE = {
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.TIER_MISCONFIGURED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.TIER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SOLD_OUT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    ErrorCode.CAPACITY_BELOW_SOLD: status.HTTP_409_CONFLICT,
    ErrorCode.TIER_IN_USE: status.HTTP_409_CONFLICT,
}


def error_response(error: DomainError) -> Response:
    """Map a domain error to its HTTP response."""
    return Response(
        {"code": error.code.value, "message": error.message},
        status=_STATUS_FOR_CODE.get(error.code, status.HTTP_400_BAD_REQUEST),
    )


def invalid_input(errors: dict) -> Response:
    return Response(
        {"code": ErrorCode.VALIDATION_FAILED.value, "message": "Invalid input", "fields": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


def is_operator(request: Request) -> bool:
    return bool(request.user and request.user.is_staff)


class EventDetailView(APIView):
    """Handler for GET /api/event and PUT (operators only)

    Operator checks for PUT happen in the event service.
    """

    permission_classes = [AllowAny]

    def get(self, request: Request) -> Response:
        data = cache.get(EVENT_CACHE_KEY)
        if data is None:
            data = dict(EventSerializer(services.event_service().get_event()).data)
            cache.set(EVENT_CACHE_KEY, data, settings.TICKETING["CACHE_TIMEOUT"])
        return Response(data)

    def put(self, request: Request) -> Response:
        serializer = UpdateEventSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        try:
            event = services.event_service().update_event(
                **serializer.validated_data, acting_as_operator=is_operator(request)
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(EventSerializer(event).data)


class TierListView(APIView):
    """Handler for GET /api/tiers and POST /api/tiers (operators only)"""

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAdminUser()]
        return [AllowAny()]

    def get(self, request: Request) -> Response:
        quotes = services.ticket_service().list_tiers(active_only=True)
        return Response(TierSerializer(quotes, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = CreateTierSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        service = services.ticket_service()
        try:
            tier = service.create_tier(
                name=data["name"],
                description=data["description"],
                features=tuple(data["features"]),
                price=Money(data["price"]),
                discount_price=Money(data["discount_price"]) if data["discount_price"] is not None else None,
                discount_ends_at=data["discount_ends_at"],
                capacity=data["capacity"],
                is_active=data["is_active"],
            )
            quote = service.get_tier(tier.id)
        except DomainError as exc:
            return error_response(exc)
        return Response(TierSerializer(quote).data, status=status.HTTP_201_CREATED)


class TierDetailView(APIView):
    """Handler for GET /api/tiers/{tier_id}; PUT, PATCH and DELETE are for operators"""

    def get_permissions(self):
        if self.request.method in ("PUT", "PATCH", "DELETE"):
            return [IsAdminUser()]
        return [AllowAny()]

    def get(self, request: Request, tier_id: str) -> Response:
        try:
            quote = services.ticket_service().get_tier(tier_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(TierSerializer(quote).data)

    def patch(self, request: Request, tier_id: str) -> Response:
        serializer = ResizeTierSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        service = services.ticket_service()
        try:
            service.resize_tier(tier_id, serializer.validated_data["capacity"])
            quote = service.get_tier(tier_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(TierSerializer(quote).data)

    def put(self, request: Request, tier_id: str) -> Response:
        serializer = UpdateTierSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        data = serializer.validated_data
        service = services.ticket_service()
        try:
            service.update_tier(
                tier_id,
                name=data["name"],
                description=data["description"],
                features=tuple(data["features"]),
                price=Money(data["price"]),
                discount_price=Money(data["discount_price"]) if data["discount_price"] is not None else None,
                discount_ends_at=data["discount_ends_at"],
                is_active=data["is_active"],
            )
            quote = service.get_tier(tier_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(TierSerializer(quote).data)

    def delete(self, request: Request, tier_id: str) -> Response:
        try:
            services.ticket_service().delete_tier(tier_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class TierAvailabilityView(APIView):
    """Handler for GET /api/tiers/{tier_id}/availability"""

    permission_classes = [AllowAny]

    def get(self, request: Request, tier_id: str) -> Response:
        try:
            availability = services.ticket_service().tier_availability(tier_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(AvailabilitySerializer(availability).data)


class PaymentProofUploadView(APIView):
    """Handler for POST /api/uploads/payment-proof"""

    permission_classes = [AllowAny]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request: Request) -> Response:
        serializer = PaymentProofSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        upload = serializer.validated_data["file"]
        try:
            url = services.PaymentProofStorage().save(upload, upload.content_type)
        except DomainError as exc:
            return error_response(exc)
        return Response({"url": url}, status=status.HTTP_201_CREATED)


class BookingListView(APIView):
    """Handler for POST /api/bookings"""

    permission_classes = [AllowAny]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def post(self, request: Request) -> Response:
        serializer = CreateBookingSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        try:
            booking_request = services.build_booking_request(serializer.validated_data)
            booking = services.booking_service().create_booking(booking_request)
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class BookingDetailView(APIView):
    """Handler for GET /api/bookings/{booking_id}"""

    permission_classes = [AllowAny]

    def get(self, request: Request, booking_id: str) -> Response:
        try:
            booking = services.booking_service().get_booking(booking_id)
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data)


class AdminBookingListView(APIView):
    """Handler for GET /api/admin/bookings

    Optional filters: ``?status=`` or ``?tier=``. An empty value means all.
    """

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        service = services.booking_service()
        tier_id = request.query_params.get("tier") or None
        try:
            if tier_id is not None:
                bookings = service.bookings_for_tier(tier_id)
            else:
                bookings = service.list_bookings(request.query_params.get("status") or None)
        except DomainError as exc:
            return error_response(exc)
        return Response(
            {
                "results": BookingSerializer(bookings, many=True).data,
                "summary": BookingSummarySerializer(service.booking_summary()).data,
            }
        )


class AdminBookingDetailView(APIView):
    """Handler for PATCH and DELETE /api/admin/bookings/{booking_id}

    Operator checks happen in the booking service.
    """

    permission_classes = [AllowAny]

    def patch(self, request: Request, booking_id: str) -> Response:
        serializer = SetStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer.errors)
        try:
            booking = services.booking_service().set_status(
                booking_id,
                serializer.validated_data["status"],
                acting_as_operator=is_operator(request),
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(BookingSerializer(booking).data)

    def delete(self, request: Request, booking_id: str) -> Response:
        try:
            services.booking_service().delete_booking(
                booking_id, acting_as_operator=is_operator(request)
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminStatsView(APIView):
    """Handler for GET /api/admin/stats"""

    permission_classes = [IsAdminUser]

    def get(self, request: Request) -> Response:
        bookings = services.booking_service()
        quotes = services.ticket_service().list_tiers(active_only=False)
        sales = [(quote, bookings.confirmed_quantity(quote.tier.id)) for quote in quotes]
        return Response(
            {
                **BookingSummarySerializer(bookings.booking_summary()).data,
                "tiers": TierSalesSerializer(sales, many=True).data,
            }
        )
