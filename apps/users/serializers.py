from rest_framework import serializers

from .models import User


class RegisterIn(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.CharField(max_length=100)
    password = serializers.CharField(trim_whitespace=False)
    confirm_password = serializers.CharField(trim_whitespace=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)


class LoginIn(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)


class ProfileIn(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    email = serializers.CharField(max_length=100, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    state = serializers.CharField(max_length=50, required=False, allow_blank=True)
    zip_code = serializers.CharField(max_length=10, required=False, allow_blank=True)
    current_password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    new_password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    confirm_password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)


class ForgotPasswordIn(serializers.Serializer):
    email = serializers.CharField()


class ResetPasswordIn(serializers.Serializer):
    password = serializers.CharField(trim_whitespace=False)
    confirm_password = serializers.CharField(trim_whitespace=False)


class AdminUserIn(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.CharField(max_length=100)
    password = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    role = serializers.ChoiceField(choices=User.Role.choices, required=False)


class UserOut(serializers.ModelSerializer):
    has_profile_image = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id", "name", "email", "role", "phone", "address", "city", "state",
            "zip_code", "is_active", "email_verified", "last_login", "created_at",
            "has_profile_image",
        ]

    def get_has_profile_image(self, obj):
        return bool(obj.profile_image)
