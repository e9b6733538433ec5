from django.contrib import admin

from lab_core.catalog.models import LabTest, TestPackage


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "price", "unit", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(TestPackage)
class TestPackageAdmin(admin.ModelAdmin):
    list_display = ("package_code", "package_name", "original_price", "package_price", "is_active")
    list_filter = ("is_active",)
    search_fields = ("package_code", "package_name")
    filter_horizontal = ("tests",)
