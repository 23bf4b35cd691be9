"""Wage Calc - attendance-to-payroll and withholding tax calculations."""

__version__ = "0.1.0"
