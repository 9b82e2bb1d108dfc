from rest_framework import serializers

from canteen.validators import normalize_phone
from .models import Profile


class ProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    last_sign_in_at = serializers.DateTimeField(source='user.last_login', read_only=True)
    email_confirmed = serializers.BooleanField(source='user.is_active', read_only=True)

    class Meta:
        model = Profile
        fields = ['user_id', 'full_name', 'email', 'phone', 'roll_number', 'role',
                 'profile_photo_url', 'date_of_birth', 'year_of_study', 'branch',
                 'created_at', 'updated_at', 'last_sign_in_at', 'email_confirmed']
        read_only_fields = fields


class SessionStateSerializer(serializers.Serializer):
    phase = serializers.ChoiceField(choices=['anonymous', 'guest', 'authenticated'])
    user = ProfileSerializer(allow_null=True)
    is_guest = serializers.BooleanField()
    is_admin = serializers.BooleanField()
    loading = serializers.BooleanField()


class LoginSerializer(serializers.Serializer):
    identifier = serializers.CharField(help_text="Email or roll number")
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    admin_code = serializers.CharField(required=False, allow_blank=True, write_only=True,
                                       help_text="Admin access code (admin logins only)")


class RegisterSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=20)
    password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)
    role = serializers.ChoiceField(
        choices=[Profile.STUDENT, Profile.TEACHER], default=Profile.STUDENT,
        help_text="Admins are promoted from the dashboard, never self-registered"
    )
    roll_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    year_of_study = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    branch = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)

    def validate_full_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name cannot be blank")
        return value.strip()

    def validate_phone(self, value):
        return normalize_phone(value)

    def validate_roll_number(self, value):
        value = value.strip().upper()
        if value and Profile.objects.filter(roll_number=value).exists():
            raise serializers.ValidationError("Roll number already registered")
        return value or None


class EmailSerializer(serializers.Serializer):
    email = serializers.EmailField()


class TokenSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()


class SetPasswordSerializer(TokenSerializer):
    new_password = serializers.CharField(min_length=6, write_only=True, trim_whitespace=False)


class ProfileUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=20, required=False)
    roll_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    year_of_study = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    branch = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    photo = serializers.FileField(required=False, write_only=True)

    def validate_phone(self, value):
        return normalize_phone(value)

    def validate_roll_number(self, value):
        value = value.strip().upper()
        profile = self.context.get('profile')
        taken = Profile.objects.filter(roll_number=value)
        if profile is not None:
            taken = taken.exclude(pk=profile.pk)
        if value and taken.exists():
            raise serializers.ValidationError("Roll number already registered")
        return value or None


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Profile.ROLE_CHOICES)


class UserStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    students = serializers.IntegerField()
    teachers = serializers.IntegerField()
    admins = serializers.IntegerField()
    new_this_month = serializers.IntegerField()
