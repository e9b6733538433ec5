from django.contrib import admin

from lab_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("patient_code", "first_name", "last_name", "phone", "gender", "created_at")
    list_filter = ("gender",)
    search_fields = ("patient_code", "first_name", "last_name", "email", "phone")
    ordering = ("-created_at",)
