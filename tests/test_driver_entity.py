from datetime import date

import pytest

from src.core.entities.driver import (
    ConflictReason,
    DriverFields,
    IndicationStatus,
    OmnilinkStatus,
    PendingDriverRecord,
    derive_omnilink,
    is_valid_row,
    normalize_indication,
    only_digits,
    parse_reasons,
    serialize_reasons,
)


class TestOmnilinkDerivation:
    """Vencimento = cadastro + 6 meses; status vigente só antes do vencimento."""

    def test_six_months_and_one_day_ago_is_lapsed(self):
        """Cadastro há 6 meses e 1 dia → vencido."""
        today = date(2024, 9, 15)
        expiry, status = derive_omnilink(date(2024, 3, 14), today=today)
        assert expiry == date(2024, 9, 14)
        assert status == OmnilinkStatus.LAPSED

    def test_six_months_minus_one_day_ago_is_current(self):
        """Cadastro há 6 meses menos 1 dia → em dia."""
        today = date(2024, 9, 15)
        expiry, status = derive_omnilink(date(2024, 3, 16), today=today)
        assert expiry == date(2024, 9, 16)
        assert status == OmnilinkStatus.CURRENT

    def test_expiry_on_today_is_lapsed(self):
        """O dia do vencimento já não conta como em dia."""
        _, status = derive_omnilink(date(2024, 3, 15), today=date(2024, 9, 15))
        assert status == OmnilinkStatus.LAPSED

    def test_month_end_is_clamped(self):
        """31/08 + 6 meses cai no último dia de fevereiro."""
        expiry, _ = derive_omnilink(date(2023, 8, 31), today=date(2023, 9, 1))
        assert expiry == date(2024, 2, 29)

    def test_no_registration_date(self):
        assert derive_omnilink(None) == (None, None)


class TestReasonTags:
    """Tags de conflito são um conjunto; string só na fronteira de storage."""

    def test_serialize_in_canonical_order(self):
        reasons = {ConflictReason.BATCH_DUPLICATE_CPF, ConflictReason.DUPLICATE_CPF}
        assert serialize_reasons(reasons) == "duplicate-cpf, batch-duplicate-cpf"

    def test_serialize_empty_is_none(self):
        assert serialize_reasons(frozenset()) is None

    def test_parse_accepts_legacy_underscores_and_ignores_unknown(self):
        """Formato antigo (duplicate_cpf) ainda é lido; tags desconhecidas somem."""
        parsed = parse_reasons("duplicate_cpf, batch_duplicate_cnh, mystery")
        assert parsed == {ConflictReason.DUPLICATE_CPF, ConflictReason.BATCH_DUPLICATE_CNH}

    def test_pending_reason_text(self):
        pending = PendingDriverRecord(
            full_name="X", cpf="1", reasons=frozenset({ConflictReason.DUPLICATE_CNH}),
        )
        assert pending.reason_text == "duplicate-cnh"
        assert not pending.is_duplicate


class TestNormalization:

    @pytest.mark.parametrize("raw, expected", [
        ("123.456.789-09", "12345678909"),
        ("  ", None),
        (None, None),
        ("(11) 98888-7777", "11988887777"),
    ])
    def test_only_digits(self, raw, expected):
        assert only_digits(raw) == expected

    def test_row_without_cpf_digits_is_invalid(self):
        assert not is_valid_row(DriverFields(full_name="Ana", cpf="---"))
        assert not is_valid_row(DriverFields(full_name="  ", cpf="123"))
        assert is_valid_row(DriverFields(full_name="Ana", cpf="123"))

    def test_reason_cleared_unless_not_indicated(self):
        """Motivo de não indicação só sobrevive com status not-indicated."""
        indicated = DriverFields(
            full_name="Ana", cpf="1",
            indication_status=IndicationStatus.INDICATED, indication_reason="sem score",
        )
        assert normalize_indication(indicated).indication_reason is None

        not_indicated = DriverFields(
            full_name="Ana", cpf="1",
            indication_status=IndicationStatus.NOT_INDICATED, indication_reason="sem score",
        )
        assert normalize_indication(not_indicated).indication_reason == "sem score"
