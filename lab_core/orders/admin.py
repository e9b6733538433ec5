from django.contrib import admin

from lab_core.orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "patient",
        "order_status",
        "payment_status",
        "priority",
        "total_amount",
        "paid_amount",
        "created_at",
    )
    list_filter = ("order_status", "payment_status", "priority")
    search_fields = ("order_number", "patient__patient_code", "patient__first_name", "patient__last_name")
    # lifecycle fields are owned by the services
    readonly_fields = ("order_number", "total_amount", "paid_amount", "payment_status", "order_status", "completed_at")
    filter_horizontal = ("tests", "packages")
    ordering = ("-created_at",)
