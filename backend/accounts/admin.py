from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "role", "unit",
                    "is_active", "prefers_dark_theme")
    search_fields = ("username", "email")
    list_filter = ("is_active", "role", "unit")
    filter_horizontal = ("groups", "user_permissions")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Peran & Unit", {"fields": ("role", "unit", "prefers_dark_theme")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Peran & Unit", {"fields": ("email", "role", "unit")}),
    )
