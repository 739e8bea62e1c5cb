"""Utility functions for hotelbilling."""

from hotelbilling.utils.amount_parser import parse_amount, to_money
from hotelbilling.utils.date_parser import parse_datetime, get_period_range

__all__ = ["parse_amount", "to_money", "parse_datetime", "get_period_range"]
