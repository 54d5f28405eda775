"""
Tests for SPD payment strings, variable symbols and QR rendering
"""

import base64
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from app.core.exceptions import ValidationError
from app.services import payment_service as payments
from app.services.payment_service import (
    build_spd_string,
    format_amount,
    generate_qr_data_url,
    generate_variable_symbol,
    get_bank_account,
    get_default_bank_account,
    payment_service,
)

# 12:00 UTC is 13:00 in Prague, still the same calendar day
FIXED_NOW = datetime(2025, 3, 7, 12, 0, tzinfo=timezone.utc)


class TestSpdString:

    def test_spd_format(self):
        account = get_bank_account("main")
        spd = build_spd_string("Jana", Decimal("150"), account, "2503071234", FIXED_NOW)

        assert spd == (
            "SPD*1.0*ACC:CZ9130300000001628400020*AM:150.00*CC:CZK"
            "*MSG:Game On! (07. 03. 25) - Jana *X-VS:2503071234"
        )

    def test_date_uses_event_timezone(self):
        # 23:30 UTC on the 7th is already the 8th in Prague
        late = datetime(2025, 3, 7, 23, 30, tzinfo=timezone.utc)
        spd = build_spd_string("Jana", 100, get_bank_account("vitek"), "2503080001", late)

        assert "(08. 03. 25)" in spd
        assert "ACC:CZ5220100000002801494468" in spd

    @pytest.mark.parametrize("price,expected", [
        (Decimal("150"), "150.00"),
        (99.5, "99.50"),
        (Decimal("0.005"), "0.01"),
        (200, "200.00"),
    ])
    def test_amount_formatting(self, price, expected):
        assert format_amount(price) == expected


class TestVariableSymbol:

    def test_prefix_is_local_date(self):
        symbol = generate_variable_symbol(FIXED_NOW)

        assert len(symbol) == 10
        assert symbol.isdigit()
        assert symbol.startswith("250307")

    def test_random_suffix_is_zero_padded(self, monkeypatch):
        monkeypatch.setattr(payments.random, "randint", lambda a, b: 42)

        assert generate_variable_symbol(FIXED_NOW) == "2503070042"


class TestQrCode:

    def test_data_url_contains_png(self):
        url = generate_qr_data_url("SPD*1.0*ACC:CZ9130300000001628400020*AM:10.00*CC:CZK")

        assert url.startswith("data:image/png;base64,")
        raw = base64.b64decode(url.split(",", 1)[1])
        assert raw[:8] == b"\x89PNG\r\n\x1a\n"


class TestBankAccounts:

    def test_default_account(self):
        assert get_default_bank_account().id == "main"

    def test_configured_default(self, monkeypatch):
        monkeypatch.setattr(payments.settings, "DEFAULT_BANK_ACCOUNT", "vitek")

        assert get_default_bank_account().id == "vitek"

    def test_unknown_configured_default_falls_back(self, monkeypatch):
        monkeypatch.setattr(payments.settings, "DEFAULT_BANK_ACCOUNT", "nope")

        assert get_default_bank_account().id == "main"

    def test_resolve_unknown_account(self):
        with pytest.raises(ValidationError) as exc_info:
            payment_service.resolve_account("missing")

        assert exc_info.value.code == "2001"
        assert exc_info.value.status_code == 400

    def test_resolve_none_uses_default(self):
        assert payment_service.resolve_account(None).id == "main"
