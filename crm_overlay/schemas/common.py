from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# 15- or 18-character Salesforce record id
RECORD_ID_PATTERN = r"^[a-zA-Z0-9]{15}(?:[a-zA-Z0-9]{3})?$"


class ObjectType(str, Enum):
    account = "Account"
    opportunity = "Opportunity"


class Operator(str, Enum):
    eq = "="
    ne = "!="
    lt = "<"
    gt = ">"
    le = "<="
    ge = ">="
    in_ = "IN"
    not_in = "NOT IN"
    contains = "contains"


class Logic(str, Enum):
    and_ = "AND"
    or_ = "OR"


class Flag(str, Enum):
    at_risk = "at-risk"
    critical = "critical"
    warning = "warning"


class Tier(str, Enum):
    hot = "hot"
    warm = "warm"
    cool = "cool"
    cold = "cold"


class CamelModel(BaseModel):
    """Base for models exchanged as camelCase JSON documents.

    Attributes stay snake_case in Python; either spelling is accepted on
    input and the camelCase alias is used when serialising.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
