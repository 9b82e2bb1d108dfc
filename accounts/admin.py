from django.contrib import admin
from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['id', 'full_name', 'user', 'role', 'roll_number', 'phone', 'created_at']
    list_filter = ['role', 'year_of_study', 'created_at']
    search_fields = ['full_name', 'roll_number', 'user__email']
    readonly_fields = ['created_at', 'updated_at']
