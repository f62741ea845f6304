from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class StockCreate(CamelModel):
    item_name: str = Field(min_length=1, max_length=255)
    quantity_received: float = Field(ge=0)
    quantity_sold: float = Field(default=0, ge=0)
    unit_price: float
    selling_price: float | None = None
    week: int = Field(ge=1, le=53)
    year: int
    created_at: str = Field(min_length=1)
    updated_at: str = Field(min_length=1)


class SalesUpdate(CamelModel):
    quantity_sold: float = Field(ge=0)
    unit_price: float | None = None
    selling_price: float | None = None


class StockRead(CamelModel):
    id: str
    owner_id: str
    item_name: str
    quantity_received: float
    quantity_sold: float
    unit_price: float
    selling_price: float | None
    week: int
    year: int
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class StockUpdated(BaseModel):
    message: str
    stock: StockRead
