"""
Admin configuration for the users app.

This module unregisters the default `User` admin and re-registers it with
an inline profile form so that billing data and KYC state are editable
via the Django admin.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User
from .models import UserProfile


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    can_delete = False
    readonly_fields = (
        "lifetime_earnings",
        "stripe_identity_verification_id",
        "kyc_verification_last_attempt",
        "kyc_verified_at",
    )


class UserAdmin(BaseUserAdmin):
    inlines = [UserProfileInline]
    list_display = ("username", "email", "is_active", "date_joined")


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "city", "lifetime_earnings", "kyc_required", "kyc_verification_status")
    list_filter = ("kyc_required", "kyc_verification_status", "country")
    search_fields = ("user__username", "user__email", "stripe_identity_verification_id")


admin.site.unregister(User)
admin.site.register(User, UserAdmin)
