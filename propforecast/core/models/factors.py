"""
Scenario factor configuration models.

A scenario factor pairs a ``factor_type`` tag with a JSON config payload
whose shape depends on the tag. Each tag maps to one pydantic model in
``FACTOR_CONFIG_MODELS``; configs are parsed at the JSON edge and the
projection engine only ever sees typed models.

Parsing is lenient: ``parse_factor_config`` returns None for anything it
cannot turn into a valid config, so one corrupt factor is skipped instead
of aborting the whole projection.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from propforecast.core.constants import (
    DEFAULT_MARGINAL_TAX_RATE,
    FactorType,
)
from propforecast.core.models.portfolio import PropertyForSale

logger = logging.getLogger(__name__)


class FactorConfigBase(BaseModel):
    """
    Base for factor configs.

    Strict mode keeps validation structural: "1.5" is not a number and
    True is not a month count.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        frozen=True,
        extra="ignore",
    )

    def to_json(self) -> str:
        """Serialize with camelCase keys, omitting unset optional fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class InterestRateFactorConfig(FactorConfigBase):
    """Percentage-point shift to loan rates; apply_to is "all" or a property id."""

    change_percent: float
    apply_to: str


class VacancyFactorConfig(FactorConfigBase):
    """Zero rent on one property for ``months`` consecutive months."""

    property_id: str
    months: int = Field(..., gt=0)


class RentChangeFactorConfig(FactorConfigBase):
    """Percentage rent change; every property when property_id is omitted."""

    change_percent: float
    property_id: Optional[str] = None


class ExpenseChangeFactorConfig(FactorConfigBase):
    """Percentage expense change; every category when category is omitted."""

    change_percent: float
    category: Optional[str] = None


class SellPropertyFactorConfig(FactorConfigBase):
    """Sell a property at settlement_month, removing it and its loans."""

    property_id: str
    sale_price: float = Field(..., ge=0)
    selling_costs: float = Field(default=0.0, ge=0)
    settlement_month: int = Field(..., ge=0)


class BuyPropertyFactorConfig(FactorConfigBase):
    """
    Buy a property at purchase_month.

    Without loan_term_months the new loan is interest-only; with it the
    repayment is the fully amortizing payment over that term.
    """

    purchase_price: float = Field(..., ge=0)
    deposit: float = Field(..., ge=0)
    loan_amount: float = Field(..., ge=0)
    interest_rate: float
    expected_rent: float = Field(..., ge=0)
    expected_expenses: float = Field(..., ge=0)
    purchase_month: int = Field(..., ge=0)
    loan_term_months: Optional[int] = Field(default=None, gt=0)


FactorConfig = Union[
    InterestRateFactorConfig,
    VacancyFactorConfig,
    RentChangeFactorConfig,
    ExpenseChangeFactorConfig,
    SellPropertyFactorConfig,
    BuyPropertyFactorConfig,
]

FACTOR_CONFIG_MODELS: Dict[FactorType, Type[FactorConfigBase]] = {
    FactorType.INTEREST_RATE: InterestRateFactorConfig,
    FactorType.VACANCY: VacancyFactorConfig,
    FactorType.RENT_CHANGE: RentChangeFactorConfig,
    FactorType.EXPENSE_CHANGE: ExpenseChangeFactorConfig,
    FactorType.SELL_PROPERTY: SellPropertyFactorConfig,
    FactorType.BUY_PROPERTY: BuyPropertyFactorConfig,
}


def parse_factor_config(factor_type, raw_config) -> Optional[FactorConfig]:
    """
    Parse a factor config payload for the given factor type.

    Args:
        factor_type: FactorType or its string tag
        raw_config: JSON string/bytes, dict, or an already-parsed config model

    Returns:
        The typed config, or None if the type is unknown or the payload is
        malformed or structurally invalid.
    """
    ftype = FactorType.from_value(factor_type)
    if ftype is None:
        logger.warning(f"Unknown factor type {factor_type!r}; ignoring config")
        return None

    model = FACTOR_CONFIG_MODELS[ftype]
    if isinstance(raw_config, model):
        return raw_config

    try:
        if isinstance(raw_config, (str, bytes, bytearray)):
            return model.model_validate_json(raw_config)
        if isinstance(raw_config, dict):
            return model.model_validate(raw_config)
    except ValidationError as e:
        logger.warning(f"Invalid {ftype.value} factor config: {e.error_count()} error(s)")
        logger.debug(f"Rejected {ftype.value} config {raw_config!r}: {e}")
        return None

    logger.warning(f"Unsupported config payload type for {ftype.value}: {type(raw_config).__name__}")
    return None


def is_valid_factor_config(factor_type, config) -> bool:
    """
    Structural check of a factor config (field presence and primitive types).

    Cross-field rules such as settlement_month >= start_month are not checked.
    """
    return factor_config_errors(factor_type, config) == []


def factor_config_errors(factor_type, config) -> list:
    """Human-readable validation errors for a config; empty when valid."""
    ftype = FactorType.from_value(factor_type)
    if ftype is None:
        return [f"Unknown factor type: {factor_type}"]

    model = FACTOR_CONFIG_MODELS[ftype]
    if isinstance(config, model):
        return []
    if not isinstance(config, dict):
        return [f"Config must be an object, got {type(config).__name__}"]

    try:
        model.model_validate(config)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        ]
    return []


# ======================
# Scenario factors
# ======================


class ScenarioFactor(BaseModel):
    """
    A user-authored factor as stored with a scenario.

    ``config`` stays raw (JSON string or dict) until the projection resolves
    it, so a corrupt payload only drops this factor.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    factor_type: str
    config: Any = None
    start_month: int = Field(default=0, ge=0)
    duration_months: Optional[int] = Field(default=None, gt=0)
    property_sale: Optional[PropertyForSale] = None
    marginal_tax_rate: float = Field(default=DEFAULT_MARGINAL_TAX_RATE, ge=0, le=1)

    @field_validator("factor_type", mode="before")
    @classmethod
    def _factor_type_tag(cls, value):
        if isinstance(value, FactorType):
            return value.value
        return value

    def config_json(self) -> str:
        """Config as the JSON string a scenario store would persist."""
        if isinstance(self.config, FactorConfigBase):
            return self.config.to_json()
        if isinstance(self.config, (str, bytes, bytearray)):
            return self.config if isinstance(self.config, str) else self.config.decode()
        return json.dumps(self.config)

    def resolve(self) -> Optional["ResolvedFactor"]:
        """Parse the config; None if it cannot be used."""
        config = parse_factor_config(self.factor_type, self.config)
        if config is None:
            return None
        return ResolvedFactor(
            factor_type=FactorType(self.factor_type),
            config=config,
            start_month=self.start_month,
            duration_months=self.duration_months,
            property_sale=self.property_sale,
            marginal_tax_rate=self.marginal_tax_rate,
        )


class ResolvedFactor(BaseModel):
    """A scenario factor whose config has been parsed and typed."""

    model_config = ConfigDict(frozen=True)

    factor_type: FactorType
    config: FactorConfig
    start_month: int = 0
    duration_months: Optional[int] = None
    property_sale: Optional[PropertyForSale] = None
    marginal_tax_rate: float = DEFAULT_MARGINAL_TAX_RATE

    @property
    def trigger_month(self) -> Optional[int]:
        """Month a one-shot factor takes effect; None for windowed factors."""
        if isinstance(self.config, SellPropertyFactorConfig):
            return self.config.settlement_month
        if isinstance(self.config, BuyPropertyFactorConfig):
            return self.config.purchase_month
        return None

    def is_active(self, month: int) -> bool:
        """
        Whether the factor applies in ``month``.

        One-shot factors are active only in their configured month. Windowed
        factors are active in [start_month, start_month + duration_months),
        or from start_month onward when no duration is set.
        """
        if self.factor_type.is_one_shot:
            return month == self.trigger_month
        if month < self.start_month:
            return False
        return self.duration_months is None or month < self.start_month + self.duration_months


def resolve_factors(factors) -> List[ResolvedFactor]:
    """
    Parse a list of factors, dropping any that cannot be used.

    Accepts ResolvedFactor, ScenarioFactor or plain dicts (camelCase or
    snake_case keys). Dropped factors are logged, never raised.
    """
    resolved = []
    for index, factor in enumerate(factors or []):
        if isinstance(factor, ResolvedFactor):
            resolved.append(factor)
            continue
        if not isinstance(factor, ScenarioFactor):
            try:
                factor = ScenarioFactor.model_validate(factor)
            except ValidationError as e:
                logger.warning(f"Skipping factor #{index}: {e.error_count()} validation error(s)")
                continue
        parsed = factor.resolve()
        if parsed is None:
            logger.warning(f"Skipping factor #{index} ({factor.factor_type}): config could not be parsed")
            continue
        resolved.append(parsed)
    return resolved
