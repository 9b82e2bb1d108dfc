from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'user_id', 'total_amount', 'room_number', 'payment_method', 'status', 'payment_status', 'placed_at']
    list_filter = ['status', 'payment_status', 'payment_method', 'placed_at']
    search_fields = ['order_number', 'room_number', 'contact_number', 'customer_name']
    readonly_fields = ['order_number', 'items', 'total_amount', 'status', 'placed_at', 'updated_at']
