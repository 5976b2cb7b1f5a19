from pydantic import BaseModel, ConfigDict


class StructuredContent(BaseModel):
    """Headline/description/CTA copy returned to the plugin.

    ``descriptions`` is aligned by position with ``headlines``.
    """

    model_config = ConfigDict(frozen=True)

    headlines: list[str]
    descriptions: list[str]
    ctas: list[str]

    def empty_fields(self) -> list[str]:
        return [name for name in ("headlines", "descriptions", "ctas") if not getattr(self, name)]


class ContentRecord(BaseModel):
    headline: str
    body: str
    cta: str
    theme: str = ""
    specialty: str = ""
    generated: str | None = None
    source: str | None = None
