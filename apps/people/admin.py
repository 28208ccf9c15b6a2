import import_export.admin
import import_export.resources
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.http import HttpResponse
from django.utils.translation import gettext_lazy as _
from hijack.contrib.admin import HijackUserAdminMixin
from reversion.admin import VersionAdmin

from .models import Member


class MemberResource(import_export.resources.ModelResource):
    class Meta:
        model = Member
        fields = ('first_name', 'last_name', 'email', 'date_joined', 'has_joined_event')
        export_order = fields


@admin.register(Member)
class MemberAdmin(import_export.admin.ExportMixin, HijackUserAdminMixin, UserAdmin, VersionAdmin):
    list_display = ('email', 'first_name', 'last_name', 'is_staff', 'is_active')
    search_fields = ('first_name', 'last_name', 'email')
    list_filter = UserAdmin.list_filter + ('has_joined_event',)
    ordering = ('email',)
    actions = ['make_mailing_list']
    resource_class = MemberResource  # For ExportMixin

    fieldsets = (
        (None, {'fields': ('password',)}),
        (_('Personal info'), {'fields': ('first_name', 'last_name', 'email')}),
        (_('Onboarding'), {'fields': ('has_viewed_events', 'has_joined_event')}),
        (_('Permissions'), {'fields': ('is_active', 'is_staff', 'is_superuser',
                                       'groups', 'user_permissions')}),
        (_('Important dates'), {'fields': ('last_login', 'date_joined')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2'),
        }),
    )

    def make_mailing_list(self, request, queryset):
        return HttpResponse(
            "\n".join("{} <{}>,".format(u.full_name, u.email) for u in queryset),
            content_type="text/plain; charset=utf-8",
        )
