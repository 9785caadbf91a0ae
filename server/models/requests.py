from pydantic import BaseModel, Field

from shared.models.product import ProductCreate


class ClaimRequest(BaseModel):
    url: str
    handle: str = Field(min_length=1)


class BulkIndexRequest(BaseModel):
    products: list[ProductCreate] = Field(min_length=1)
