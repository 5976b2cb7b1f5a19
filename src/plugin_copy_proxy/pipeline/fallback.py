from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType

from plugin_copy_proxy.pipeline.content import ContentRecord, StructuredContent

FALLBACK_SOURCE = "fallback"

TOPIC_FALLBACKS = MappingProxyType(
    {
        "spine": StructuredContent(
            headlines=[
                "Expert Spine Care Close to Home",
                "Minimally Invasive Spine Surgery",
                "Back Pain Relief That Lasts",
            ],
            descriptions=[
                "Our board-certified spine specialists diagnose and treat neck and back conditions with personalized care plans.",
                "Advanced techniques mean smaller incisions, less pain and a faster return to the activities you love.",
                "From physical therapy to surgery, we guide you through every step of your recovery.",
            ],
            ctas=["Book a Spine Consult", "Find a Specialist", "Learn More", "Call Today"],
        ),
        "cardiac": StructuredContent(
            headlines=[
                "Heart Care You Can Trust",
                "Advanced Cardiac Treatment",
                "Protect Your Heart Health",
            ],
            descriptions=[
                "Our cardiology team delivers comprehensive heart care, from prevention to complex procedures.",
                "State-of-the-art diagnostics and minimally invasive procedures led by experienced cardiac specialists.",
                "Regular screenings and healthy habits help you stay ahead of heart disease.",
            ],
            ctas=["Schedule a Heart Screening", "Meet Our Cardiologists", "Learn More", "Get Care"],
        ),
        "general": StructuredContent(
            headlines=[
                "Quality Care for Every Stage of Life",
                "Experienced Doctors, Modern Facilities",
                "Your Health Is Our Priority",
            ],
            descriptions=[
                "Comprehensive medical services delivered by a caring team focused on you and your family.",
                "Our specialists use advanced technology to diagnose and treat a wide range of conditions.",
                "Convenient locations and flexible scheduling make it easier to get the care you need.",
            ],
            ctas=["Book Appointment", "Find a Doctor", "Learn More", "Contact Us"],
        ),
    }
)


def resolve_topic(context: str | None) -> str:
    lowered = (context or "").lower()
    if "spine" in lowered:
        return "spine"
    if "heart" in lowered or "cardiac" in lowered:
        return "cardiac"
    return "general"


def fallback_for(context: str | None) -> StructuredContent:
    return TOPIC_FALLBACKS[resolve_topic(context)]


@dataclass(frozen=True)
class SpecialtyTemplate:
    headlines: tuple[str, ...]
    bodies: tuple[str, ...]
    ctas: tuple[str, ...]
    themes: tuple[str, ...]


SPECIALTY_TEMPLATES = MappingProxyType(
    {
        "general": SpecialtyTemplate(
            headlines=(
                "Medical Care",
                "Healthcare Services",
                "Patient Care",
                "Treatment Options",
                "Medical Team",
                "Health Solutions",
                "Professional Care",
                "Medical Excellence",
            ),
            bodies=(
                "Professional medical services with expert care and advanced technology.",
                "Comprehensive healthcare solutions designed for optimal patient wellness and recovery.",
                "Expert medical care delivered by experienced professionals in modern facilities.",
            ),
            ctas=("Learn More", "Schedule", "Contact", "Get Care", "Book Now"),
            themes=("professional", "comprehensive", "expert", "advanced"),
        ),
        "cardiac": SpecialtyTemplate(
            headlines=(
                "Heart Care",
                "Cardiac Services",
                "Heart Health",
                "Cardiovascular Care",
                "Heart Surgery",
                "Cardiac Excellence",
            ),
            bodies=(
                "Expert cardiovascular care with advanced cardiac treatments and technology.",
                "Comprehensive heart health services from leading cardiac specialists.",
                "Advanced cardiac care featuring minimally invasive procedures and expert surgeons.",
            ),
            ctas=("Heart Care", "Cardiac", "Schedule", "Consult"),
            themes=("cardiac", "cardiovascular", "heart", "surgical"),
        ),
        "emergency": SpecialtyTemplate(
            headlines=(
                "Emergency Care",
                "24/7 Services",
                "Urgent Care",
                "Critical Care",
                "Trauma Center",
                "Emergency Medicine",
            ),
            bodies=(
                "Round-the-clock emergency medical services with expert trauma care teams.",
                "Immediate emergency care available 24/7 with advanced life-saving technology.",
                "Critical care emergency services with rapid response medical teams.",
            ),
            ctas=("Get Help", "Emergency", "Call Now", "Urgent"),
            themes=("emergency", "urgent", "critical", "trauma"),
        ),
    }
)


def generate_fallback_records(specialty: str, count: int, now: datetime | None = None) -> list[ContentRecord]:
    """Build ``count`` deterministic records by cycling the specialty template.

    Unknown specialties reuse the general template. Once the headline cycle
    wraps, headlines get a numeric suffix (" 2", " 3", ...).
    """
    template = SPECIALTY_TEMPLATES.get(specialty) or SPECIALTY_TEMPLATES["general"]
    generated = (now or datetime.now(timezone.utc)).isoformat()
    headline_count = len(template.headlines)
    records: list[ContentRecord] = []
    for i in range(count):
        headline = template.headlines[i % headline_count]
        if i >= headline_count:
            headline = f"{headline} {i // headline_count + 1}"
        records.append(
            ContentRecord(
                headline=headline,
                body=template.bodies[i % len(template.bodies)],
                cta=template.ctas[i % len(template.ctas)],
                theme=template.themes[i % len(template.themes)],
                specialty=specialty,
                generated=generated,
                source=FALLBACK_SOURCE,
            )
        )
    return records
