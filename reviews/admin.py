from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['id', 'item_name', 'rating', 'user_name', 'user_role', 'likes', 'created_at']
    list_filter = ['rating', 'user_role', 'created_at']
    search_fields = ['item_name', 'user_name', 'comment']
    readonly_fields = ['likes', 'created_at']
