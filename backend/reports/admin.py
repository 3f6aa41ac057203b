from django.contrib import admin

from .models import PersonnelAssignment, Report, StatusUpdate, StolenVehicle


class StolenVehicleInline(admin.TabularInline):
    model = StolenVehicle
    extra = 0


class PersonnelAssignmentInline(admin.TabularInline):
    model = PersonnelAssignment
    extra = 0


class StatusUpdateInline(admin.TabularInline):
    model = StatusUpdate
    extra = 0
    can_delete = False
    readonly_fields = ("status", "status_detail", "description",
                       "updated_at", "updated_by", "author")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "display_number", "case_type", "reporter_name",
                    "status", "status_detail", "assigned_unit", "report_date")
    list_filter = ("report_type", "status", "status_detail", "assigned_unit", "spkt")
    search_fields = ("report_number", "reporter_name", "case_type")
    date_hierarchy = "report_date"
    inlines = [StolenVehicleInline, PersonnelAssignmentInline, StatusUpdateInline]


@admin.register(StolenVehicle)
class StolenVehicleAdmin(admin.ModelAdmin):
    list_display = ("vehicle_type", "frame_number", "engine_number", "report")
    search_fields = ("vehicle_type", "frame_number", "engine_number")


@admin.register(StatusUpdate)
class StatusUpdateAdmin(admin.ModelAdmin):
    list_display = ("report", "status", "status_detail", "updated_by", "updated_at")
    list_filter = ("status", "status_detail")

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
