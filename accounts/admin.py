from django.contrib import admin
from accounts.models import UserRecord

@admin.register(UserRecord)
class UserRecordAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'role', 'created_at')
    list_filter = ('role', 'created_at')
    search_fields = ('email', 'first_name', 'last_name', 'phone')
    readonly_fields = ('id', 'created_at', 'updated_at')

    fieldsets = (
        ('User', {
            'fields': ('id', 'email', 'first_name', 'last_name', 'phone', 'role')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
