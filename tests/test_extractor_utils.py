"""
Testes para as funções utilitárias de extração (extractors.utils).

Testa:
- Valores monetários nas notações brasileira e internacional
- Datas ISO-8601 e dd/mm/yyyy
- Normalização e formatação de CPF/CNPJ
- Formatação de valores em reais
"""

import unittest
from datetime import date
from decimal import Decimal

from core.models import TaxId
from extractors.utils import (
    format_brl,
    format_cnpj,
    format_cpf,
    format_tax_id,
    normalize_amount_string,
    normalize_digits,
    parse_decimal_amount,
    parse_invoice_date,
)


class TestParseDecimalAmount(unittest.TestCase):
    """Testa parse_decimal_amount."""

    def test_brazilian_format(self):
        self.assertEqual(parse_decimal_amount("1.234,56"), Decimal("1234.56"))

    def test_international_format(self):
        self.assertEqual(parse_decimal_amount("1,234.56"), Decimal("1234.56"))

    def test_dot_decimal(self):
        self.assertEqual(parse_decimal_amount("1500.00"), Decimal("1500.00"))

    def test_comma_decimal(self):
        self.assertEqual(parse_decimal_amount("1500,00"), Decimal("1500.00"))

    def test_integer(self):
        self.assertEqual(parse_decimal_amount("1500"), Decimal("1500"))

    def test_repeated_separator_is_thousands(self):
        self.assertEqual(parse_decimal_amount("1.234.567"), Decimal("1234567"))

    def test_single_separator_is_decimal(self):
        """'1.500' tem um único separador: é decimal."""
        self.assertEqual(parse_decimal_amount("1.500"), Decimal("1.5"))

    def test_currency_prefix_and_spaces(self):
        self.assertEqual(parse_decimal_amount("R$ 1.500,00"), Decimal("1500.00"))
        self.assertEqual(parse_decimal_amount("  250,75 "), Decimal("250.75"))

    def test_negative_preserved(self):
        self.assertEqual(parse_decimal_amount("-10,00"), Decimal("-10.00"))

    def test_precision_is_exact(self):
        """Decimal não perde centavos como float."""
        self.assertEqual(parse_decimal_amount("0,10") + parse_decimal_amount("0,20"), Decimal("0.30"))

    def test_invalid_values(self):
        for value in ["abc", "", None, "NaN", "Infinity", "1e3", "12,34,56.7.8", "1.2.3,4,5"]:
            with self.subTest(value=value):
                self.assertIsNone(parse_decimal_amount(value))

    def test_normalize_amount_string(self):
        self.assertEqual(normalize_amount_string("R$ 1.500,00"), "1500.00")
        self.assertEqual(normalize_amount_string("1\xa0500,00"), "1500.00")


class TestParseInvoiceDate(unittest.TestCase):
    """Testa parse_invoice_date."""

    def test_iso_date(self):
        self.assertEqual(parse_invoice_date("2024-03-10"), date(2024, 3, 10))

    def test_iso_datetime_variants(self):
        for value in [
            "2024-03-10T14:30",
            "2024-03-10T14:30:00",
            "2024-03-10T14:30:00.123",
            "2024-03-10T14:30:00-03:00",
            "2024-03-10T14:30:00Z",
            "2024-03-10 14:30:00",
        ]:
            with self.subTest(value=value):
                self.assertEqual(parse_invoice_date(value), date(2024, 3, 10))

    def test_brazilian_date(self):
        self.assertEqual(parse_invoice_date("10/03/2024"), date(2024, 3, 10))

    def test_leap_day(self):
        self.assertEqual(parse_invoice_date("29/02/2024"), date(2024, 2, 29))

    def test_impossible_dates(self):
        for value in ["31/02/2024", "2023-02-29", "2024-13-01", "00/01/2024"]:
            with self.subTest(value=value):
                self.assertIsNone(parse_invoice_date(value))

    def test_unrecognized_formats(self):
        for value in ["", None, "ontem", "10-03-2024", "2024/03/10", "1/3/2024"]:
            with self.subTest(value=value):
                self.assertIsNone(parse_invoice_date(value))


class TestTaxIdHelpers(unittest.TestCase):

    def test_normalize_digits(self):
        self.assertEqual(normalize_digits("12.345.678/0001-95"), "12345678000195")
        self.assertEqual(normalize_digits(""), "")

    def test_format_cnpj(self):
        self.assertEqual(format_cnpj("12345678000195"), "12.345.678/0001-95")

    def test_format_cpf(self):
        self.assertEqual(format_cpf("12345678909"), "123.456.789-09")

    def test_format_invalid_length_unchanged(self):
        self.assertEqual(format_cnpj("123"), "123")
        self.assertEqual(format_cpf("123"), "123")

    def test_format_tax_id(self):
        self.assertEqual(format_tax_id(TaxId.from_digits("12345678000195")), "12.345.678/0001-95")
        self.assertEqual(format_tax_id(TaxId.from_digits("12345678909")), "123.456.789-09")


class TestFormatBrl(unittest.TestCase):

    def test_thousands(self):
        self.assertEqual(format_brl(Decimal("1500")), "R$ 1.500,00")

    def test_millions(self):
        self.assertEqual(format_brl(Decimal("1234567.89")), "R$ 1.234.567,89")

    def test_cents(self):
        self.assertEqual(format_brl(Decimal("0.5")), "R$ 0,50")


if __name__ == '__main__':
    unittest.main()
