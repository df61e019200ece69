"""
Wire models shared by the proxy service and the register.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BarcodeQuery(WireModel):
    code: str = Field(min_length=1)


class ProductLookupResult(WireModel):
    product_id: int
    code: str
    name: str
    price: int


class TransactionLine(WireModel):
    product_id: int = 0
    code: str
    name: str
    unit_price: int
    tax_code: str
    count: int = Field(gt=0)


class TransactionRequest(WireModel):
    employee_code: Optional[str] = None
    store_code: str
    pos_number: str
    total_amount: int
    total_amount_ex_tax: int
    lines: List[TransactionLine]


class TransactionResult(WireModel):
    total_price: int
    total_price_ex_tax: int


class ErrorBody(BaseModel):
    error: str


def inline_json_schema(model: type[BaseModel]) -> dict:
    """JSON schema of `model` by alias, with nested model definitions inlined.

    Used for request bodies the proxy documents but does not parse.
    """
    schema = model.model_json_schema(by_alias=True, ref_template="{model}")
    defs = schema.pop("$defs", {})

    def inline(node):
        if isinstance(node, dict):
            if "$ref" in node:
                return inline(defs[node["$ref"]])
            return {key: inline(value) for key, value in node.items()}
        if isinstance(node, list):
            return [inline(value) for value in node]
        return node

    return inline(schema)
