"""
Letter templating
Escapes user-supplied fields and merges them into the HTML templates
"""

import html
import re
from datetime import date
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel

PLACEHOLDER_RE = re.compile(r"{{(\w+)}}")

LABELS = {
    "nepali": {"DATE_LABEL": "मिति:-", "SUBJECT_LABEL": "विषय:-", "SALUTATION": "श्री"},
    "english": {"DATE_LABEL": "Date:", "SUBJECT_LABEL": "Subject:", "SALUTATION": "Dear"},
}
DEFAULT_LANGUAGE = "nepali"

# Template placeholder -> LetterFields attribute
FIELD_PLACEHOLDERS = {
    "DATE": "date",
    "RECIPIENT": "recipient",
    "ORG": "org",
    "ADDRESS": "address",
    "SUBJECT": "subject",
    "BODY_TEXT": "body",
    "SIGN_NAME": "signname",
    "SIGN_TITLE": "signtitle",
}


class LetterFields(BaseModel):
    """Fields submitted through the letter form; empty strings are valid"""
    language: str = DEFAULT_LANGUAGE
    date: str = ""
    recipient: str = ""
    org: str = ""
    address: str = ""
    subject: str = ""
    body: str = ""
    signname: str = ""
    signtitle: str = ""


def escape_html(value: Optional[str]) -> str:
    """Escape &, <, >, and both quote characters"""
    return html.escape(value or "", quote=True)


def fill_template(template: str, data: Dict[str, str]) -> str:
    """Replace every {{KEY}}; unknown or empty keys become an empty string"""
    return PLACEHOLDER_RE.sub(lambda m: data.get(m.group(1)) or "", template)


def build_template_data(fields: LetterFields, base_url: str) -> Dict[str, str]:
    """
    Build the substitution map for the letter template.

    Labels follow ``fields.language`` (anything other than ``english`` renders
    Nepali labels). Asset URLs point at the /assets mount under ``base_url``.
    """
    base_url = base_url.rstrip("/")
    labels = LABELS["english"] if fields.language == "english" else LABELS[DEFAULT_LANGUAGE]

    data = {
        "LOGO_PATH": f"{base_url}/assets/logo.png",
        "DEV_FONT_REG": f"{base_url}/assets/fonts/NotoSansDevanagari-Regular.ttf",
        "DEV_FONT_BOLD": f"{base_url}/assets/fonts/NotoSansDevanagari-Bold.ttf",
    }
    data.update({key: escape_html(value) for key, value in labels.items()})
    for placeholder, attr in FIELD_PLACEHOLDERS.items():
        data[placeholder] = escape_html(getattr(fields, attr))
    return data


def today_ad_input(today: Optional[date] = None) -> str:
    """Today's date formatted for an <input type="date"> (yyyy-mm-dd)"""
    return (today or date.today()).strftime("%Y-%m-%d")


class TemplateStore:
    """Reads form.html and template.html from the templates directory"""

    def __init__(self, templates_dir: str):
        self.templates_dir = Path(templates_dir)

    def _read(self, name: str) -> str:
        return (self.templates_dir / name).read_text(encoding="utf-8")

    def render_form_page(self, today: Optional[date] = None) -> str:
        return fill_template(self._read("form.html"), {"TODAY_AD_INPUT": today_ad_input(today)})

    def render_letter(self, fields: LetterFields, base_url: str) -> str:
        return fill_template(self._read("template.html"), build_template_data(fields, base_url))
