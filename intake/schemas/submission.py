from pydantic import BaseModel

REQUIRED_FIELDS = (
    "business_name",
    "address",
    "phone",
    "discount_rate",
    "map_link",
    "description",
)


class SubmissionFields(BaseModel):
    business_name: str | None = None
    address: str | None = None
    phone: str | None = None
    discount_rate: str | None = None
    map_link: str | None = None
    description: str | None = None
    promo_tag: str = ""

    def missing_fields(self) -> list[str]:
        """Names of required fields that are absent, empty or whitespace-only."""
        return [
            name
            for name in REQUIRED_FIELDS
            if not getattr(self, name) or not getattr(self, name).strip()
        ]


class SubmitResponse(BaseModel):
    ok: bool
    message: str
