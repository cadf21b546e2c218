"""
Core math modules для launchpad

Чистые целочисленные функции bonding curve (floor во всех делениях).
"""

from launchpad.core.math.curve_math import (
    FEE_RATE_SINGULARITY_BPS,
    BuyQuote,
    InitialBuyQuote,
    SellQuote,
    fee_from_net,
    fee_on_gross,
    initial_buy_quote,
    quote_buy,
    quote_exact_tokens_out,
    quote_sell,
    quote_to_token_out,
    token_out_to_quote_in,
    token_to_quote_out,
)

__all__ = [
    # Constants
    "FEE_RATE_SINGULARITY_BPS",
    # Types
    "BuyQuote",
    "InitialBuyQuote",
    "SellQuote",
    # Curve formulas
    "quote_to_token_out",
    "token_out_to_quote_in",
    "token_to_quote_out",
    # Fees
    "fee_on_gross",
    "fee_from_net",
    # Fee-inclusive quotes
    "quote_buy",
    "quote_exact_tokens_out",
    "quote_sell",
    "initial_buy_quote",
]
