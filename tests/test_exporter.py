"""Tests for services.exporter."""

from __future__ import annotations

import csv
from io import BytesIO, StringIO

import pytest
from openpyxl import load_workbook

from services.exporter import build_table, export_collection, export_csv, export_xlsx
from services.sku_collection import FormInputs, SkuRecord, generate_batch


class TestBuildTable:
    def test_empty_collection(self) -> None:
        headers, rows = build_table([])
        assert headers == ["SKU", "Size", "Rule", "Separator"]
        assert rows == []

    def test_column_order(self, denim_jacket_records: list[SkuRecord]) -> None:
        headers, rows = build_table(denim_jacket_records)
        assert headers == ["SKU", "Product", "Year", "Article", "Color", "Size", "Rule", "Separator"]
        assert rows[0] == ["FAL24-DEN-BLU-M", "Fall Winter", "2024", "Denim Jacket", "Blue", "M", "rule1", "-"]

    def test_full_mode_column(
        self,
        denim_jacket_records: list[SkuRecord],
        basic_tee_records: list[SkuRecord],
    ) -> None:
        headers, rows = build_table([*denim_jacket_records, *basic_tee_records])
        assert headers[-1] == "Color Full"
        assert [row[-1] for row in rows] == ["No", "No", "Yes"]

    def test_missing_attribute_blank(self, denim_jacket_records: list[SkuRecord]) -> None:
        product_only = generate_batch(FormInputs(product="Summer"), ["S"])
        headers, rows = build_table([*product_only, *denim_jacket_records])
        assert headers[:5] == ["SKU", "Product", "Year", "Article", "Color"]
        assert rows[0][3:5] == ["", ""]


class TestExportCsv:
    def test_rows(self, denim_jacket_records: list[SkuRecord]) -> None:
        parsed = list(csv.reader(StringIO(export_csv(denim_jacket_records))))
        assert parsed[0][0] == "SKU"
        assert [row[0] for row in parsed[1:]] == ["FAL24-DEN-BLU-M", "FAL24-DEN-BLU-L"]

    def test_values_with_commas_quoted(self) -> None:
        records = generate_batch(
            FormInputs(product="Fall, Winter", attributes={"article": 'Jacket "Denim"'}), ["M"]
        )
        parsed = list(csv.reader(StringIO(export_csv(records))))
        assert parsed[1][1] == "Fall, Winter"
        assert parsed[1][3] == 'Jacket "Denim"'


class TestExportXlsx:
    def test_workbook_contents(self, denim_jacket_records: list[SkuRecord]) -> None:
        wb = load_workbook(BytesIO(export_xlsx(denim_jacket_records)))
        ws = wb["SKUs"]
        values = [list(row) for row in ws.iter_rows(values_only=True)]
        assert values[0] == ["SKU", "Product", "Year", "Article", "Color", "Size", "Rule", "Separator"]
        assert values[1][0] == "FAL24-DEN-BLU-M"

    def test_strings_not_coerced(self, denim_jacket_records: list[SkuRecord]) -> None:
        numeric_sku = generate_batch(FormInputs(product="2024", year="2024"), ["M"])
        formula_like = generate_batch(FormInputs(product="=SUM(A1)"), ["L"])
        wb = load_workbook(BytesIO(export_xlsx([*numeric_sku, *formula_like])))
        ws = wb.active
        assert ws["B2"].value == "2024"
        assert ws["C2"].value == "2024"
        assert ws["B3"].value == "=SUM(A1)"
        assert ws["B3"].data_type == "s"

    def test_control_characters_dropped(self) -> None:
        records = generate_batch(FormInputs(product="Tee\x07 Shirt"), ["M"])
        wb = load_workbook(BytesIO(export_xlsx(records)))
        ws = wb.active
        assert ws["B2"].value == "Tee Shirt"
        assert ws["A2"].value == "TEE-M"


class TestExportCollection:
    def test_csv(self, denim_jacket_records: list[SkuRecord]) -> None:
        content, mimetype, filename = export_collection(denim_jacket_records, "csv")
        assert content.startswith(b"SKU,")
        assert mimetype == "text/csv"
        assert filename == "skus.csv"

    def test_xlsx(self, denim_jacket_records: list[SkuRecord]) -> None:
        content, _, filename = export_collection(denim_jacket_records, "xlsx")
        assert content[:2] == b"PK"
        assert filename == "skus.xlsx"

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="format must be one of"):
            export_collection([], "pdf")
