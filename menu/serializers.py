from rest_framework import serializers
from .models import MenuItem


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ['id', 'name', 'category', 'price', 'type', 'rating', 'prep_time',
                 'description', 'is_special', 'image', 'is_available']
        read_only_fields = ['id']
        extra_kwargs = {
            'price': {'help_text': 'Price in whole rupees (e.g., 45 = ₹45)'},
            'rating': {'help_text': 'Average rating between 0 and 5'},
            'prep_time': {'help_text': 'Free-text preparation time (e.g., "15 min")'}
        }

    def validate_rating(self, value):
        if value < 0 or value > 5:
            raise serializers.ValidationError("rating must be between 0 and 5")
        return value

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("name cannot be blank")
        return value.strip()


class MenuPhotoSerializer(serializers.Serializer):
    photo = serializers.FileField(help_text="Image file to store under menu-photos/")
