"""
Letters & Mail Links
Author: Bryce Fountain | Skoll.dev

Utility statement letter (Word-compatible HTML), letter templates and
mailto links.
"""
import re
from datetime import date
from html import escape
from typing import Optional
from urllib.parse import quote

from propdesk import config
from propdesk.allocation import UtilityStatement
from propdesk.models import Owner, Property, Template, Tenant, Unit

DEFAULT_INTRO = (
    "please find enclosed the statement of your share of the operating costs "
    "for the calendar year."
)

# Word opens HTML saved with a .doc extension; the Office namespaces keep the
# page layout.
_WORD_HEADER = (
    "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
    "xmlns:w='urn:schemas-microsoft-com:office:word' "
    "xmlns='http://www.w3.org/TR/REC-html40'><head><meta charset='utf-8'>"
    "<style>@page { size: 21cm 29.7cm; margin: 2cm; } "
    "body { font-family: Arial, sans-serif; font-size: 10pt; color: #000; } "
    "table { border-collapse: collapse; width: 100%; border: 1px solid #000; } "
    "th, td { border: 1px solid #000; padding: 6px; text-align: left; }</style>"
    "</head><body>"
)


def format_money(value: float) -> str:
    return f"{value:,.2f} {config.CURRENCY}"


def default_closing(owner: Optional[Owner]) -> str:
    sender = owner.display_name() if owner else "Your property management"
    return f"Kind regards,\n{sender}"


def statement_filename(tenant: Optional[Tenant], year, extension: str) -> str:
    """e.g. 'Statement_Mustermann_2024.doc'"""
    name = tenant.last_name if tenant else "Tenant"
    return f"Statement_{name}_{year}.{extension.lstrip('.')}"


def statement_letter_html(statement: UtilityStatement, prop: Property, unit: Unit,
                          tenant: Optional[Tenant], owner: Optional[Owner],
                          intro: str = DEFAULT_INTRO, closing: str = None) -> str:
    """Render the utility statement letter as Word-compatible HTML."""
    closing = closing if closing is not None else default_closing(owner)
    sender = owner.display_name() if owner else "Property Management"
    sender_address = ""
    if owner and owner.address:
        sender_address = f"{owner.address}, {owner.zip} {owner.city}".strip(", ")
    recipient = tenant.full_name() if tenant else "Tenant"
    salutation = f"Dear {recipient}," if tenant else "Dear Sir or Madam,"
    year = statement.year or date.today().year

    rows = "".join(
        f"<tr><td>{escape(item.category)}</td><td>{format_money(item.total)}</td>"
        f"<td>{escape(item.key_label)}</td><td>{format_money(item.share)}</td></tr>"
        for item in statement.items
    )
    closing_html = "<br>".join(escape(line) for line in closing.splitlines())

    return (
        _WORD_HEADER
        + f"<p style='font-size:8pt'>{escape(sender)}"
        + (f" &middot; {escape(sender_address)}" if sender_address else "")
        + "</p>"
        + f"<p>{escape(recipient)}<br>{escape(prop.address)}<br>Unit {escape(unit.number)}</p>"
        + f"<p style='text-align:right'>{date.today().isoformat()}</p>"
        + f"<h3>Utility cost statement {year}</h3>"
        + f"<p>{escape(salutation)}</p><p>{escape(intro)}</p>"
        + "<table><tr><th>Cost type</th><th>Total</th><th>Key</th><th>Your share</th></tr>"
        + rows
        + f"<tr><td colspan='3'>Total share</td><td>{format_money(statement.total_share)}</td></tr>"
        + f"<tr><td colspan='3'>Prepayments made</td><td>-{format_money(statement.annual_prepayment)}</td></tr>"
        + f"<tr><td colspan='3'><b>{statement.outcome_label}</b></td>"
        + f"<td><b>{format_money(abs(statement.balance))}</b></td></tr>"
        + "</table>"
        + f"<p>{closing_html}</p>"
        + "</body></html>"
    )


# -----------------------------------------------------------------------------
# Templates & mail
# -----------------------------------------------------------------------------
_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render_template(template: Template, **values) -> dict:
    """
    Fill a letter template's {placeholders}.

    Only {name} placeholders are replaced. Unknown names and any other
    braces are left as they are so a half-filled template can still be
    edited by hand.

    Returns:
        dict with 'subject' and 'content'
    """
    values = {key: str(value) for key, value in values.items() if value is not None}

    def fill(text: str) -> str:
        return _PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), text)

    return {"subject": fill(template.subject), "content": fill(template.content)}


def mailto_link(to: str, subject: str, body: str) -> str:
    """Build a mailto: URL with an encoded subject and body."""
    return f"mailto:{to}?subject={quote(subject)}&body={quote(body)}"
