from rest_framework import serializers
from menu.models import MenuItem


class CartItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    category = serializers.CharField(required=False)
    price = serializers.IntegerField(help_text="Unit price in rupees")
    type = serializers.CharField(required=False)
    rating = serializers.FloatField(required=False)
    prep_time = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    is_special = serializers.BooleanField(required=False)
    image = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True)
    total_items = serializers.IntegerField(help_text="Sum of all quantities")
    total_price = serializers.IntegerField(help_text="Sum of price x quantity in rupees")


class AddToCartSerializer(serializers.Serializer):
    menu_item_id = serializers.IntegerField(help_text="ID of the menu item to add")

    def validate_menu_item_id(self, value):
        try:
            item = MenuItem.objects.get(id=value)
        except MenuItem.DoesNotExist:
            raise serializers.ValidationError("Menu item not found")
        if not item.is_available:
            raise serializers.ValidationError("Menu item is not available right now")
        return value


class UpdateQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(help_text="New quantity; 0 or less removes the item")


def cart_payload(cart):
    return CartSerializer({
        'items': cart.items,
        'total_items': cart.total_items(),
        'total_price': cart.total_price(),
    }).data
