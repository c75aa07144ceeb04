from django.contrib import admin

from ticketing.models import Booking, Event, TicketTier


class BookingInline(admin.TabularInline):
    model = Booking
    extra = 0
    fields = ["full_name", "email", "quantity", "unit_price", "status"]
    readonly_fields = fields
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "location", "starts_at", "ends_at"]
    search_fields = ["name", "location"]


@admin.register(TicketTier)
class TicketTierAdmin(admin.ModelAdmin):
    list_display = ["name", "price", "discount_price", "discount_ends_at", "capacity", "sold", "is_active"]
    list_filter = ["is_active"]
    readonly_fields = ["sold", "created_at", "updated_at"]
    inlines = [BookingInline]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Bookings are decided through the booking API so inventory stays in step."""

    list_display = ["full_name", "email", "tier", "quantity", "unit_price", "status", "created_at"]
    list_filter = ["status", "tier"]
    search_fields = ["full_name", "email", "payment_reference"]
    readonly_fields = ["status", "unit_price", "tier", "quantity", "created_at", "updated_at"]

    def has_delete_permission(self, request, obj=None) -> bool:
        return False
