from django.contrib import admin

from .models import Personnel, Unit


class PersonnelInline(admin.TabularInline):
    model = Personnel
    extra = 0
    fields = ("name", "rank", "user")
    readonly_fields = ("user",)


@admin.register(Unit)
class UnitAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at")
    search_fields = ("name",)
    inlines = [PersonnelInline]


@admin.register(Personnel)
class PersonnelAdmin(admin.ModelAdmin):
    list_display = ("id", "rank", "name", "unit", "user")
    list_filter = ("unit",)
    search_fields = ("name", "rank")
