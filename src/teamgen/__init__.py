"""Balanced team generation for small-sided football clubs."""
