from django.contrib.auth import authenticate
from rest_framework import serializers

from .models import CustomUser

# Admins are provisioned through the admin site, never self-registered
SELF_SERVICE_ROLES = (CustomUser.DISPATCHER, CustomUser.ACCOUNTANT)


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)

    def validate(self, attrs):
        user = authenticate(username=attrs['username'], password=attrs['password'])
        if not user:
            raise serializers.ValidationError('Invalid credentials')
        attrs['user'] = user
        return attrs


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(trim_whitespace=False)
    role = serializers.ChoiceField(choices=SELF_SERVICE_ROLES, default=CustomUser.DISPATCHER)

    def validate_username(self, value):
        if CustomUser.objects.filter(username=value).exists():
            raise serializers.ValidationError('Username already exists')
        return value

    def create(self, validated_data):
        return CustomUser.objects.create_user(**validated_data)
