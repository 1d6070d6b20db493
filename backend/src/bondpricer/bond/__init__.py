"""Bond definitions and the priceable bond."""

from bondpricer.bond.priceable import ModelState, PriceableBond
from bondpricer.bond.schema import (
    BondSpec,
    CallSpec,
    ScheduleSpec,
    build_bond,
    load_bond_spec,
)

__all__ = [
    "ModelState",
    "PriceableBond",
    "BondSpec",
    "CallSpec",
    "ScheduleSpec",
    "build_bond",
    "load_bond_spec",
]
