from django.contrib import admin
from .models import MenuItem


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'category', 'type', 'price', 'rating', 'is_special', 'is_available']
    search_fields = ['name']
    list_filter = ['category', 'type', 'is_special', 'is_available']
