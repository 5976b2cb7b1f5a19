STRUCTURED_JSON_EXAMPLE = """{
  "headlines": ["Main headline", "Secondary headline 1", "Secondary headline 2"],
  "descriptions": ["Description for main section", "Description for section 2", "Description for section 3"],
  "ctas": ["Book Appointment", "Learn More", "Contact Us"]
}"""

DEFAULT_CONTEXT = "general"


def build_structured_prompt(prompt: str, context: str = DEFAULT_CONTEXT) -> str:
    """Compose the instruction for a single headline/description/CTA set.

    The context and prompt are embedded verbatim; an empty context falls back
    to ``"general"``.
    """
    topic = context or DEFAULT_CONTEXT
    return "\n".join(
        [
            "You are an expert healthcare marketing copywriter who writes clear, "
            "trustworthy, patient-focused copy for hospital and clinic websites.",
            "",
            f"Context: {topic}",
            f"Request: {prompt}",
            "",
            "Create content with:",
            "- 1 main headline and 2-3 secondary headlines",
            "- A short description (1-2 sentences) for each section",
            "- 3-4 call-to-action phrases (1-3 words each)",
            "",
            "Respond with JSON only, using exactly this format:",
            STRUCTURED_JSON_EXAMPLE,
        ]
    )


def build_batch_prompt(specialty: str, batch_size: int) -> str:
    return f"""You are a healthcare content strategist creating diverse, professional content for a {specialty} healthcare component library.

Generate {batch_size} unique healthcare content variations. Each must be completely different and professional.

REQUIREMENTS:
- Headlines: 2-5 words, compelling and specific
- Descriptions: 8-18 words, engaging and informative
- CTAs: 1-3 words, action-oriented
- NO repetitive content - every piece must be unique
- Focus on {specialty} specialty when relevant
- Professional medical tone
- Patient-focused messaging

RESPOND WITH JSON ARRAY ONLY:
[
  {{"headline": "Emergency Care", "body": "24/7 critical care with expert medical teams ready for any situation.", "cta": "Get Help", "theme": "emergency", "specialty": "{specialty}"}},
  {{"headline": "Wellness Programs", "body": "Comprehensive preventive health services designed to keep you feeling your absolute best.", "cta": "Join Today", "theme": "wellness", "specialty": "{specialty}"}}
]

Generate {batch_size} completely unique variations with maximum diversity!"""
