"""Realized PnL attribution engine for automated trading decisions."""
