"""Utility functions for schoolbooks."""

from schoolbooks.utils.date_parser import parse_date, parse_period
from schoolbooks.utils.amount_parser import parse_amount
from schoolbooks.utils.money import to_money, round_naira, format_naira

__all__ = ["parse_date", "parse_period", "parse_amount", "to_money", "round_naira", "format_naira"]
