"""Faker-based demo data generators."""

from fincontrol.generators.base import BaseGenerator
from fincontrol.generators.demo import CardGenerator, InvestmentGenerator, PurchaseRequestGenerator

__all__ = [
    "BaseGenerator",
    "CardGenerator",
    "InvestmentGenerator",
    "PurchaseRequestGenerator",
]
