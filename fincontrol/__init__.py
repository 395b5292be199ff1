"""fincontrol: billing-cycle and fixed-income yield engine for personal finance."""

__version__ = "0.1.0"
