"""
Capital gains tax on property sales.

Cost base is purchase price plus capital improvements less depreciation
already claimed. Properties held for at least CGT_DISCOUNT_HOLDING_MONTHS
get the CGT_DISCOUNT_RATE discount on a gain; a loss is reported as
``capital_loss`` and attracts no tax.
"""

from datetime import date
from typing import Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from propforecast.core.constants import (
    CGT_DISCOUNT_HOLDING_MONTHS,
    CGT_DISCOUNT_RATE,
)
from propforecast.core.models.portfolio import PropertyForSale
from propforecast.utils.date_utils import months_between


class CGTResult(BaseModel):
    """Breakdown of the capital gains position on one sale."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    cost_base: float
    gross_gain: float
    taxable_gain: float
    cgt_payable: float
    capital_loss: float
    held_months: int
    discount_applied: bool


def calculate_cgt(
    property_sale: PropertyForSale,
    sale_price: float,
    selling_costs: float,
    marginal_tax_rate: float,
    sale_date: Union[str, date],
) -> CGTResult:
    """
    Calculate capital gains tax for a property sale.

    Args:
        property_sale: Acquisition details of the property being sold
        sale_price: Contract sale price
        selling_costs: Agent, legal and marketing costs of the sale
        marginal_tax_rate: Seller's marginal rate as a decimal (0.37 = 37%)
        sale_date: Settlement date, used for the holding-period discount

    Returns:
        CGTResult with cost base, gross/taxable gain, tax payable and loss

    Examples:
        >>> sale = PropertyForSale(id="p1", purchase_price=500000, improvements=50000,
        ...                        depreciation_claimed=10000, purchase_date=date(2020, 1, 1))
        >>> round(calculate_cgt(sale, 700000, 20000, 0.37, date(2025, 1, 1)).cgt_payable, 2)
        25900.0
    """
    cost_base = (
        property_sale.purchase_price
        + property_sale.improvements
        - property_sale.depreciation_claimed
    )
    gross_gain = sale_price - selling_costs - cost_base
    held_months = months_between(property_sale.purchase_date, sale_date)
    eligible_for_discount = held_months >= CGT_DISCOUNT_HOLDING_MONTHS

    if gross_gain > 0:
        discount_applied = eligible_for_discount
        taxable_gain = gross_gain * (1 - CGT_DISCOUNT_RATE) if discount_applied else gross_gain
        capital_loss = 0.0
    else:
        discount_applied = False
        taxable_gain = 0.0
        capital_loss = -gross_gain

    return CGTResult(
        cost_base=cost_base,
        gross_gain=gross_gain,
        taxable_gain=taxable_gain,
        cgt_payable=taxable_gain * marginal_tax_rate,
        capital_loss=capital_loss,
        held_months=held_months,
        discount_applied=discount_applied,
    )
