from django.contrib import admin

from lab_core.lab.models import LabResult


@admin.register(LabResult)
class LabResultAdmin(admin.ModelAdmin):
    list_display = ("order", "test", "patient", "overall_status", "is_verified", "technician", "reported_at")
    list_filter = ("overall_status", "is_verified")
    search_fields = ("order__order_number", "test__code", "patient__patient_code")
    readonly_fields = ("is_verified", "verified_by", "verified_at", "reported_at")
    ordering = ("-created_at",)
