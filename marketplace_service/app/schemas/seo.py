from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

BULK_OPERATIONS = ("generate-alt-text", "generate-seo-keywords", "generate-meta")


class BulkSeoRequest(BaseModel):
    product_ids: List[int] = Field(..., min_length=1, max_length=500)
    operations: List[str] = Field(..., min_length=1)
    overwrite: bool = False

    @field_validator("operations")
    @classmethod
    def validate_operations(cls, v):
        unknown = [op for op in v if op not in BULK_OPERATIONS]
        if unknown:
            raise ValueError(f"Unknown operations: {', '.join(unknown)}")
        return v


class SeoValidationRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None
