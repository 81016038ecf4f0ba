import pytest

from propdesk.allocation import build_statement
from propdesk.documents import (
    add_meter_reading,
    base64_payload,
    document_bytes,
    document_from_upload,
    meter_consumption,
    meter_unit,
)
from propdesk.letters import (
    default_closing,
    format_money,
    mailto_link,
    render_template,
    statement_filename,
    statement_letter_html,
)
from propdesk.models import MeterType, Owner, Template, Tenant


class TestDocuments:

    def test_upload_is_stored_as_data_url(self):
        doc = document_from_upload("notes.txt", b"hello", "text/plain", category="Unit")
        assert doc.file_data.startswith("data:text/plain;base64,")
        assert doc.category == "Unit"
        assert document_bytes(doc) == b"hello"

    def test_file_size_in_kilobytes(self):
        assert document_from_upload("a.bin", b"x" * 2048, "").file_size == "2 KB"

    def test_unknown_mime_type(self):
        assert document_from_upload("a.bin", b"x", None).mime_type == "application/octet-stream"

    def test_base64_payload(self):
        assert base64_payload("data:image/png;base64,QUJD") == "QUJD"
        assert base64_payload("QUJD") == "QUJD"


class TestMeters:

    def test_reading_units(self):
        assert meter_unit(MeterType.ELECTRICITY) == "kWh"
        assert meter_unit(MeterType.GAS) == "m³"
        assert meter_unit("Water") == "m³"

    def test_add_meter_reading(self):
        readings = []
        reading = add_meter_reading(readings, MeterType.ELECTRICITY, 4711, "E-1", "2024-01-01")
        assert readings == [reading]
        assert reading.unit == "kWh"
        assert reading.id.startswith("m")

    def test_consumption_per_meter(self):
        readings = []
        add_meter_reading(readings, MeterType.WATER, 250, "W-1", "2024-12-31")
        add_meter_reading(readings, MeterType.WATER, 100, "W-1", "2024-01-01")
        add_meter_reading(readings, MeterType.GAS, 900, "", "2024-06-01")
        assert meter_consumption(readings) == {"W-1": 150, "Gas": 0}


class TestLetters:

    def test_format_money(self):
        assert format_money(1234.5) == "1,234.50 €"

    def test_closing_uses_company(self):
        owner = Owner(id="o1", name="Jane Doe", email="jane@example.com", company="Doe Estates")
        assert default_closing(owner) == "Kind regards,\nDoe Estates"
        assert default_closing(None) == "Kind regards,\nYour property management"

    def test_statement_filename(self):
        tenant = Tenant(id="t1", first_name="Max", last_name="Mustermann")
        assert statement_filename(tenant, 2024, "doc") == "Statement_Mustermann_2024.doc"
        assert statement_filename(None, 2024, ".csv") == "Statement_Tenant_2024.csv"

    def test_statement_letter(self, store, prop):
        unit = prop.find_unit("u1")
        tenant = store.tenant_for_unit(unit)
        statement = build_statement(prop, unit, store.transactions, year=2024)
        html = statement_letter_html(statement, prop, unit, tenant, None,
                                     intro="Costs <b>rose</b>", closing="Regards\nLandlord")

        assert "Utility cost statement 2024" in html
        assert "Dear Max Mustermann," in html
        assert "Costs &lt;b&gt;rose&lt;/b&gt;" in html
        assert "Property Tax" in html
        assert "<b>Credit</b>" in html
        assert "1,090.91 €" in html
        assert "Regards<br>Landlord" in html

    def test_render_template_keeps_unknown_placeholders(self):
        template = Template(id="tpl1", name="Rent", subject="Rent for {property}",
                            content="Dear {tenant},\n{body}\n{owner}")
        filled = render_template(template, property="Sunset Residence", tenant="Max Mustermann", owner=None)
        assert filled["subject"] == "Rent for Sunset Residence"
        assert filled["content"] == "Dear Max Mustermann,\n{body}\n{owner}"

    @pytest.mark.parametrize("text", [
        "Price: 5{ EUR",
        "Dear {0}",
        "Total {amount:.2f}",
        "See {a.b}",
        "Closing }",
    ])
    def test_render_template_leaves_other_braces_alone(self, text):
        template = Template(id="tpl1", name="Odd", subject=text, content=text)
        filled = render_template(template, amount=12.5, a="x")
        assert filled == {"subject": text, "content": text}

    def test_render_template_fills_names_next_to_stray_braces(self):
        template = Template(id="tpl1", name="Offer", subject="Offer", content="Dear {tenant}, 5{ EUR {0}")
        filled = render_template(template, tenant="Max")
        assert filled["content"] == "Dear Max, 5{ EUR {0}"

    def test_mailto_link(self):
        link = mailto_link("max@example.com", "Hello World", "Line 1\nLine 2")
        assert link == "mailto:max@example.com?subject=Hello%20World&body=Line%201%0ALine%202"
