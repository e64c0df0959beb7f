"""Custom validators and normalizers"""

import re

import phonenumbers

def format_phone_number(phone: str, default_region: str = "IN") -> str:
    """
    Format phone number to E.164

    Local numbers get the default region's country code. Numbers that
    cannot be parsed are returned with separators stripped.
    """
    phone = phone.strip()
    try:
        parsed = phonenumbers.parse(phone, default_region)
        return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    except phonenumbers.NumberParseException:
        return re.sub(r"[^\d+]", "", phone)
