import re

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from rest_framework import serializers

NON_DIGITS = re.compile(r'\D')


def normalize_phone(value):
    """
    Reduce a phone number to its 10 digits, e.g. "98765-43210" -> "9876543210"

    Raises:
        serializers.ValidationError: if what's left isn't exactly 10 digits
    """
    digits = NON_DIGITS.sub('', value or '')
    if len(digits) != 10:
        raise serializers.ValidationError("Please enter a valid 10-digit phone number")
    return digits


def normalize_contact(value):
    """An e-mail address (anything with an @) or a 10-digit phone number"""
    value = (value or '').strip()
    if '@' not in value:
        return normalize_phone(value)
    try:
        validate_email(value)
    except DjangoValidationError:
        raise serializers.ValidationError("Please enter a valid email address")
    return value.lower()
