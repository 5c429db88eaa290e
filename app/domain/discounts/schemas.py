from pydantic import BaseModel, ConfigDict, Field, field_validator
from app.domain.discounts.models import DiscountType
from app.core.utils.text_utils import strip_text


class DiscountValidationRequestDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    code: str = Field(min_length=1, max_length=64)

    _strip_code = field_validator("code", mode="before")(strip_text)


class DiscountValidationDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    valid: bool
    code: str | None = None
    discount_id: int | None = Field(default=None, exclude=True)
    discount_type: DiscountType | None = None
    discount_value: int | None = None
    reason: str
