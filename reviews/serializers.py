from rest_framework import serializers

from menu.models import MenuItem
from .models import Review


class ReviewSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True, allow_null=True)

    class Meta:
        model = Review
        fields = ['id', 'user_id', 'user_name', 'user_role', 'item_name', 'rating',
                 'comment', 'likes', 'created_at']
        read_only_fields = fields


class SubmitReviewSerializer(serializers.Serializer):
    item_name = serializers.CharField(max_length=100)
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField()

    def validate_item_name(self, value):
        value = value.strip()
        if not MenuItem.objects.filter(name__iexact=value).exists():
            raise serializers.ValidationError("Pick an item from the menu")
        return value
