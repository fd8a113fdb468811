"""Contract templates: one shared layout filled from per-category clause tables.

Rendering is a pure function of the booking, the talent (and their optional
profile), the client and the issue date. Values are resolved here, with a
placeholder for every optional field, and laid out by the autoescaping
``templates/contract.html`` Jinja2 template, so any booking row renders to a
non-empty document carrying its code and title.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import settings
from ..models.booking_status import BookingCategory


@dataclass(frozen=True)
class Placeholders:
    location: str = "To be confirmed"
    rate: str = "As agreed"
    phone: str = "On file"
    stage_name: Optional[str] = None
    deliverables: Optional[str] = None
    notes: Optional[str] = None
    date: str = "TBD"


@dataclass(frozen=True)
class ContractTemplate:
    id: str
    name: str
    description: str
    category: BookingCategory
    heading: str
    details_heading: str
    type_label: Optional[str]
    location_label: str
    date_label: str
    start_label: str
    end_label: str
    rate_label: str
    rate_suffix: str
    services_heading: str
    services: Tuple[str, ...]
    usage_heading: str
    default_usage: Tuple[Tuple[str, str], ...]
    terms_heading: str
    terms: Tuple[Tuple[str, str], ...]
    cancellation: Tuple[str, ...]
    notes_heading: str
    talent_label: str
    client_label: str
    usage_note: Optional[str] = None
    extra_sections: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()
    placeholders: Placeholders = field(default_factory=Placeholders)


MODELING = ContractTemplate(
    id="modeling-standard",
    name="Professional Modeling Agreement",
    description="Comprehensive contract for fashion, commercial, and editorial modeling work",
    category=BookingCategory.MODELING,
    heading="PROFESSIONAL MODELING AGREEMENT",
    details_heading="PROJECT DETAILS",
    type_label=None,
    location_label="Shoot Location",
    date_label="Shoot Date",
    start_label="Call Time",
    end_label="Wrap Time",
    rate_label="Modeling Rate",
    rate_suffix="per session",
    services_heading="SCOPE OF MODELING SERVICES",
    services=(
        "Professional modeling services as specified",
        "Wardrobe changes as required (up to 5 looks)",
        "Professional hair and makeup session",
        "Collaboration with creative team and photographer",
        "Standard posing and direction following",
    ),
    usage_heading="USAGE RIGHTS & LICENSING",
    default_usage=(
        ("Digital Marketing", "Website, social media, email campaigns (1 year)"),
        ("Print Advertising", "Magazines, brochures, catalogs (6 months)"),
        ("Territory", "North America"),
        ("Exclusivity", "Non-exclusive (talent may work with competitors)"),
    ),
    usage_note="Extended usage, exclusivity, or international rights require separate negotiation and additional compensation.",
    terms_heading="TERMS & CONDITIONS",
    terms=(
        ("PROFESSIONAL CONDUCT", "Talent agrees to arrive punctually, maintain professional demeanor, and follow creative direction."),
        ("WARDROBE & STYLING", "Talent will bring appropriate undergarments and personal styling items as discussed. Client will provide wardrobe unless otherwise specified."),
        ("PAYMENT TERMS", "Payment due within 30 days of shoot completion. Late payments subject to 1.5% monthly service charge."),
        ("WEATHER/FORCE MAJEURE", "Outdoor shoots may be rescheduled due to weather. Neither party liable for circumstances beyond reasonable control."),
        ("IMAGE APPROVAL", "Client has final approval on image selection and retouching. Talent may request removal of unflattering images."),
        ("CONFIDENTIALITY", "Both parties agree to maintain confidentiality regarding unreleased campaigns, pricing, and proprietary information."),
        ("LIABILITY", "Each party maintains their own insurance. Talent responsible for personal property. Client provides safe working environment."),
        ("DISPUTE RESOLUTION", "Any disputes resolved through binding arbitration in New York, NY under American Arbitration Association rules."),
    ),
    cancellation=(
        "24+ hours notice: No penalty",
        "12-24 hours notice: 50% of session fee",
        "Less than 12 hours: 100% of session fee",
    ),
    notes_heading="ADDITIONAL NOTES",
    talent_label="Talent",
    client_label="Client",
)

ACTING = ContractTemplate(
    id="acting-standard",
    name="Professional Acting Agreement",
    description="Contract for film, television, theater, and other acting engagements",
    category=BookingCategory.ACTING,
    heading="PROFESSIONAL ACTING AGREEMENT",
    details_heading="PRODUCTION DETAILS",
    type_label="Production Type",
    location_label="Location",
    date_label="Shoot/Performance Date",
    start_label="Call Time",
    end_label="Wrap Time",
    rate_label="Performance Fee",
    rate_suffix="per performance/day",
    services_heading="ROLE & PERFORMANCE REQUIREMENTS",
    services=(
        "Professional acting performance as directed",
        "Attendance at rehearsals and script readings",
        "Wardrobe fittings and costume coordination",
        "Collaboration with director and creative team",
        "Promotional activities as specified",
    ),
    usage_heading="USAGE RIGHTS & DISTRIBUTION",
    default_usage=(
        ("Initial Distribution", "Theatrical, streaming, broadcast (as applicable)"),
        ("Promotional Use", "Trailers, behind-the-scenes, press materials"),
        ("Territory", "North America (unless specified otherwise)"),
        ("Duration", "In perpetuity for the specific production"),
    ),
    terms_heading="TERMS & CONDITIONS",
    terms=(
        ("PROFESSIONAL CONDUCT", "Actor agrees to arrive punctually, maintain professional behavior, take direction, and perform to the best of their ability."),
        ("REHEARSALS & PREPARATION", "Actor will attend all scheduled rehearsals, script readings, and preparation sessions as required by production."),
        ("PAYMENT TERMS", "Payment due within 30 days of performance completion. Overtime rates apply for work exceeding 10 hours per day."),
        ("FORCE MAJEURE", "Neither party liable for delays due to weather, illness, or other circumstances beyond reasonable control."),
        ("CREATIVE CONTROL", "Final creative decisions rest with director/producer. Actor may provide input but must follow final direction."),
        ("CONFIDENTIALITY", "Actor agrees to maintain confidentiality regarding script, plot details, and production information until public release."),
        ("SAFETY & INSURANCE", "Production company provides safe working environment and general liability coverage. Actor responsible for personal property."),
        ("DISPUTE RESOLUTION", "Any disputes resolved through binding arbitration in New York, NY under Screen Actors Guild or American Arbitration Association rules."),
    ),
    cancellation=(
        "48+ hours notice: No penalty",
        "24-48 hours notice: 50% of performance fee",
        "Less than 24 hours: 100% of performance fee",
    ),
    notes_heading="ADDITIONAL PRODUCTION NOTES",
    talent_label="Actor",
    client_label="Producer",
)

COMMERCIAL = ContractTemplate(
    id="commercial-standard",
    name="Commercial Advertisement Agreement",
    description="Contract for television, digital, and print advertising campaigns",
    category=BookingCategory.COMMERCIAL,
    heading="COMMERCIAL ADVERTISEMENT AGREEMENT",
    details_heading="COMMERCIAL PRODUCTION DETAILS",
    type_label="Commercial Type",
    location_label="Production Location",
    date_label="Shoot Date",
    start_label="Call Time",
    end_label="Estimated Wrap",
    rate_label="Session Fee",
    rate_suffix="(plus usage fees)",
    services_heading="PERFORMANCE & DELIVERABLES",
    services=(
        "On-camera performance and dialogue delivery",
        "Product demonstration and interaction",
        "Multiple takes and angle coverage",
        "Wardrobe changes as required",
        "Voice-over recording (if applicable)",
    ),
    usage_heading="USAGE RIGHTS & MEDIA DISTRIBUTION",
    default_usage=(
        ("Television", "National broadcast (13 weeks initial cycle)"),
        ("Digital/Online", "Social media, YouTube, website (6 months)"),
        ("Radio", "Audio version (if applicable)"),
        ("Territory", "United States"),
        ("Exclusivity", "Category exclusive during active campaign"),
    ),
    terms_heading="COMMERCIAL TERMS & CONDITIONS",
    terms=(
        ("PROFESSIONAL CONDUCT", "Talent agrees to maintain professional demeanor, arrive punctually, and follow creative direction."),
        ("PRODUCT ENDORSEMENT", "Talent agrees to authentically represent the product/brand and avoid conflicting endorsements during exclusivity period."),
        ("PAYMENT STRUCTURE", "Session fee due within 30 days. Usage fees calculated and paid based on actual media placement."),
        ("WEATHER/POSTPONEMENT", "Outdoor shoots subject to weather delays. Talent on weather hold receives 50% of session fee for availability."),
        ("CREATIVE APPROVAL", "Client has final approval on commercial edit. Talent may request review of final version before public release."),
        ("EXCLUSIVITY", "Talent agrees not to appear in competing product commercials during active campaign period as specified in usage terms."),
        ("RESIDUALS", "Additional compensation due for usage beyond initial cycle, calculated per industry standards (SAG-AFTRA rates when applicable)."),
        ("DISPUTE RESOLUTION", "Commercial disputes resolved through American Arbitration Association or applicable union procedures."),
    ),
    cancellation=(
        "48+ hours notice: No penalty (weather hold fees may apply)",
        "24-48 hours notice: 50% of session fee",
        "Less than 24 hours: 100% of session fee",
    ),
    notes_heading="CAMPAIGN NOTES",
    talent_label="Talent",
    client_label="Advertiser",
)

EVENT = ContractTemplate(
    id="event-standard",
    name="Live Event Performance Agreement",
    description="Contract for live events, appearances, and performances",
    category=BookingCategory.EVENT,
    heading="LIVE EVENT PERFORMANCE AGREEMENT",
    details_heading="EVENT DETAILS",
    type_label="Event Type",
    location_label="Venue",
    date_label="Event Date",
    start_label="Arrival Time",
    end_label="Event End",
    rate_label="Performance Fee",
    rate_suffix="per event",
    services_heading="PERFORMANCE REQUIREMENTS",
    services=(
        "Live performance as specified",
        "Professional appearance and interaction",
        "Meet and greet with attendees (if applicable)",
        "Photo opportunities and media interviews",
        "Promotional activities as agreed",
    ),
    usage_heading="RECORDING & PROMOTIONAL USE",
    default_usage=(
        ("Recording", "Event organizer may record for promotional use"),
        ("Commercial Distribution", "Requires separate agreement and compensation"),
    ),
    extra_sections=(
        (
            "TECHNICAL REQUIREMENTS & LOGISTICS",
            (
                "Sound System: Professional audio equipment and sound check",
                "Lighting: Adequate stage/performance lighting",
                "Security: Crowd control and performer safety",
                "Transportation: Travel arrangements (if applicable)",
                "Accommodations: Hotel/lodging (for out-of-town events)",
            ),
        ),
    ),
    terms_heading="EVENT TERMS & CONDITIONS",
    terms=(
        ("PROFESSIONAL CONDUCT", "Performer agrees to maintain professional behavior, arrive punctually, and deliver quality performance suitable for the event audience."),
        ("SOUND CHECK & REHEARSAL", "Performer entitled to adequate sound check and technical rehearsal time before event commencement."),
        ("PAYMENT TERMS", "50% deposit due upon signing, balance due within 30 days of event completion. Travel expenses reimbursed separately."),
        ("WEATHER/FORCE MAJEURE", "Outdoor events subject to weather conditions. Indoor alternative venue or postponement options should be discussed in advance."),
        ("LIABILITY & INSURANCE", "Event organizer provides general liability coverage for venue and attendees. Performer responsible for personal equipment insurance."),
        ("TECHNICAL DIFFICULTIES", "Performance time may be adjusted due to technical issues beyond performer's control without penalty."),
        ("DISPUTE RESOLUTION", "Event-related disputes resolved through mediation, then binding arbitration in the jurisdiction of the event location."),
    ),
    cancellation=(
        "30+ days notice: Deposit refunded minus 10% administrative fee",
        "14-30 days notice: 50% of total fee due",
        "Less than 14 days: 100% of total fee due",
    ),
    notes_heading="EVENT NOTES",
    talent_label="Performer",
    client_label="Event Organizer",
)

GENERAL = ContractTemplate(
    id="general-standard",
    name="Talent Engagement Agreement",
    description="General-purpose engagement contract used when no category applies",
    category=BookingCategory.GENERAL,
    heading="TALENT ENGAGEMENT AGREEMENT",
    details_heading="PROJECT DETAILS",
    type_label=None,
    location_label="Location",
    date_label="Start Date",
    start_label="Start Time",
    end_label="End Date",
    rate_label="Rate",
    rate_suffix="",
    services_heading="SCOPE OF WORK",
    services=(),
    usage_heading="USAGE RIGHTS",
    default_usage=(),
    terms_heading="TERMS AND CONDITIONS",
    terms=(
        ("ENGAGEMENT", "Talent agrees to provide professional services as outlined above."),
        ("COMPENSATION", "Payment shall be made according to the agreed rate and schedule."),
        ("PROFESSIONAL CONDUCT", "Talent shall maintain professional standards and arrive punctually to all scheduled activities."),
        ("USAGE RIGHTS", "Client shall have the rights specified in the usage section above."),
        ("CONFIDENTIALITY", "Both parties agree to maintain confidentiality regarding project details."),
        ("LIABILITY", "Each party shall be responsible for their own actions and insurance coverage."),
        ("GOVERNING LAW", "This agreement shall be governed by applicable local laws."),
    ),
    cancellation=("Either party may cancel with 24-hour notice, subject to applicable cancellation fees.",),
    notes_heading="ADDITIONAL NOTES",
    talent_label="Talent",
    client_label="Client",
    placeholders=Placeholders(
        location="TBD",
        rate="TBD",
        phone="N/A",
        stage_name="N/A",
        deliverables="To be determined based on project requirements.",
        notes="No additional notes.",
    ),
)

TEMPLATES: Tuple[ContractTemplate, ...] = (MODELING, ACTING, COMMERCIAL, EVENT, GENERAL)
_BY_ID = {t.id: t for t in TEMPLATES}
_BY_CATEGORY = {t.category: t for t in TEMPLATES}


def list_templates() -> List[ContractTemplate]:
    return list(TEMPLATES)


def get_template(template_id: str) -> Optional[ContractTemplate]:
    return _BY_ID.get((template_id or "").strip())


def template_for_category(category: Optional[Any]) -> ContractTemplate:
    """Pick the category template, falling back to the general one."""
    if category is None:
        return GENERAL
    try:
        key = BookingCategory(getattr(category, "value", category))
    except ValueError:
        return GENERAL
    return _BY_CATEGORY.get(key, GENERAL)


# ── rendering ──────────────────────────────────────────────────────────────────

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _fmt_day(value: Optional[datetime], placeholder: str) -> str:
    if not value:
        return placeholder
    return value.strftime("%A, %B %d, %Y")


def _fmt_time(value: Optional[datetime], placeholder: str) -> str:
    if not value:
        return placeholder
    return value.strftime("%I:%M %p")


def _fmt_rate(rate: Any, suffix: str, placeholder: str) -> str:
    if rate in (None, ""):
        return placeholder
    try:
        amount = f"${Decimal(str(rate)):,.2f}"
    except (InvalidOperation, ValueError):
        return placeholder
    return f"{amount} {suffix}".strip()


def _person_name(user: Any) -> str:
    name = f"{_text(getattr(user, 'first_name', None))} {_text(getattr(user, 'last_name', None))}".strip()
    return name or "Name on file"


def _usage_rows(usage: Any) -> List[Tuple[str, str]]:
    rows: List[Tuple[str, str]] = []
    if isinstance(usage, dict):
        for key, value in usage.items():
            if isinstance(value, (list, tuple)):
                value = ", ".join(_text(v) for v in value)
            label = _text(key).replace("_", " ").title() or "Usage"
            rows.append((label, _text(value) or "N/A"))
    elif usage:
        rows.append(("Usage", _text(usage)))
    return rows


def _party(label: str, user: Any, phone_placeholder: str, stage_name: Optional[str] = None) -> Dict[str, Any]:
    rows = [("Name", _person_name(user))]
    if stage_name:
        rows.append(("Professional Name", stage_name))
    rows.append(("Email", _text(getattr(user, "email", None)) or "On file"))
    rows.append(("Phone", _text(getattr(user, "phone", None)) or phone_placeholder))
    return {"label": label, "rows": rows}


def _details(booking: Any, template: ContractTemplate) -> List[Tuple[str, str]]:
    ph = template.placeholders
    start = getattr(booking, "start_date", None)
    end = getattr(booking, "end_date", None)
    rows = [("Project Title", _text(getattr(booking, "title", None)) or "Untitled booking")]
    if template.type_label:
        category = getattr(booking, "category", None)
        rows.append((template.type_label, _text(getattr(category, "value", category)).title() or "General"))
    rows += [
        (template.location_label, _text(getattr(booking, "location", None)) or ph.location),
        (template.date_label, _fmt_day(start, ph.date)),
    ]
    if template is GENERAL:
        rows.append((template.end_label, _fmt_day(end, ph.date)))
    else:
        rows += [
            (template.start_label, _fmt_time(start, ph.date)),
            (template.end_label, _fmt_time(end, ph.date)),
        ]
    rows.append((template.rate_label, _fmt_rate(getattr(booking, "rate", None), template.rate_suffix, ph.rate)))
    return rows


def render_contract(
    booking: Any,
    talent: Any,
    talent_profile: Any,
    client: Any,
    template: Optional[ContractTemplate] = None,
    issued_on: Optional[date] = None,
) -> str:
    """Render the HTML contract body for one booking-talent pair."""
    template = template or template_for_category(getattr(booking, "category", None))
    ph = template.placeholders
    issued = issued_on or (getattr(booking, "created_at", None) or datetime(1970, 1, 1)).date()

    stage_name = _text(getattr(talent_profile, "stage_name", None)) if talent_profile is not None else ""
    stage_name = stage_name or ph.stage_name

    return env.get_template("contract.html").render(
        template=template,
        company={
            "name": settings.COMPANY_NAME,
            "address": settings.COMPANY_ADDRESS,
            "contact": settings.COMPANY_CONTACT,
        },
        code=_text(getattr(booking, "code", None)) or "Pending",
        issued=issued.strftime("%B %d, %Y"),
        parties=[
            _party(template.client_label, client, ph.phone),
            _party(template.talent_label, talent, ph.phone, stage_name),
        ],
        details=_details(booking, template),
        deliverables=_text(getattr(booking, "deliverables", None)),
        usage=_usage_rows(getattr(booking, "usage", None)),
        notes=_text(getattr(booking, "notes", None)) or ph.notes,
        signers=[
            (_person_name(talent), template.talent_label),
            (_person_name(client), template.client_label),
        ],
    )
