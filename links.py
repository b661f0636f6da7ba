import re
from urllib.parse import quote

from schemas import ContactLinks, Donor, EmergencyRequest

DONOR_CONTACT_MESSAGE = "Hi, I found your profile on BloodLink. I need blood donation help. Can you please assist?"
OFFER_HELP_MESSAGE = "Hi, I saw your emergency blood request on BloodLink. I would like to help!"
DONOR_CAN_HELP_MESSAGE = "Hi, I am a blood donor registered on BloodLink. I can help with your blood request."

_NOT_DIALABLE = re.compile(r"[^0-9+]")
# characters encodeURIComponent leaves alone
_URI_SAFE = "-_.!~*'()"


def clean_phone(phone: str) -> str:
    return _NOT_DIALABLE.sub("", phone or "")


def tel_link(phone: str) -> str:
    return f"tel:{clean_phone(phone)}"


def whatsapp_link(phone: str, text: str) -> str:
    return f"https://wa.me/{clean_phone(phone)}?text={quote(text, safe=_URI_SAFE)}"


def contact_links(donor: Donor) -> ContactLinks:
    return ContactLinks(
        phone=donor.phone,
        tel=tel_link(donor.phone),
        whatsapp=whatsapp_link(donor.phone, DONOR_CONTACT_MESSAGE),
    )


def request_links(request: EmergencyRequest, as_donor: bool = False) -> ContactLinks:
    """Links for answering a request; donors viewing their dashboard get a different greeting."""
    text = DONOR_CAN_HELP_MESSAGE if as_donor else OFFER_HELP_MESSAGE
    return ContactLinks(
        phone=request.contact_number,
        tel=tel_link(request.contact_number),
        whatsapp=whatsapp_link(request.contact_number, text),
    )
