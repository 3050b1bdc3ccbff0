import pytest

from pricemyfloor.utils.exceptions import ValidationError
from pricemyfloor.utils.phone import format_phone_display, is_plausible_phone, normalize_phone


def test_normalize_adds_country_code():
    assert normalize_phone("(416) 234-5678") == "+14162345678"
    assert normalize_phone("+1 416 234 5678") == "+14162345678"


def test_normalize_rejects_invalid_numbers():
    with pytest.raises(ValidationError):
        normalize_phone("12345")
    with pytest.raises(ValidationError):
        normalize_phone("  ")


def test_display_format():
    assert format_phone_display("+14162345678") == "(416) 234-5678"


def test_plausible_phone_ignores_punctuation():
    assert is_plausible_phone("(416) 234-5678")
    assert not is_plausible_phone("call me")
