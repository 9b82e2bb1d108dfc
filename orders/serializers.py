from rest_framework import serializers

from canteen.validators import normalize_contact
from .models import Order
from .state import allowed_targets


class OrderItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    price = serializers.IntegerField()
    quantity = serializers.IntegerField()
    category = serializers.CharField(required=False)
    type = serializers.CharField(required=False)


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    is_guest_order = serializers.BooleanField(read_only=True)
    next_statuses = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'user_id', 'customer_name', 'items', 'total_amount',
                 'room_number', 'contact_number', 'payment_method', 'status', 'payment_status',
                 'special_instructions', 'placed_at', 'updated_at', 'is_guest_order', 'next_statuses']
        read_only_fields = fields

    def get_next_statuses(self, obj):
        return sorted(allowed_targets(obj.status))


class PlaceOrderSerializer(serializers.Serializer):
    room_number = serializers.CharField(max_length=30)
    contact_number = serializers.CharField(
        max_length=254, help_text="Email address or 10-digit phone number"
    )
    payment_method = serializers.CharField(
        max_length=20, required=False, allow_blank=True, default='upi',
        help_text="cash, card or upi; anything else is treated as upi"
    )
    special_instructions = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    customer_name = serializers.CharField(max_length=150, required=False, allow_blank=True)

    def validate_room_number(self, value):
        if not value.strip():
            raise serializers.ValidationError("Room number is required")
        return value.strip()

    def validate_contact_number(self, value):
        return normalize_contact(value)

    def validate(self, attrs):
        # Guests have no profile to take a name from
        if self.context.get('is_guest'):
            name = (attrs.get('customer_name') or '').strip()
            if not name:
                raise serializers.ValidationError({'customer_name': "Please enter your name"})
            attrs['customer_name'] = name
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)


class OrderStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    revenue = serializers.IntegerField()
    today = serializers.IntegerField()
