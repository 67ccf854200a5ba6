"""
optionkit Package

Client-side pricing, encoding and quote streaming for an on-chain options
protocol. Heavier pieces are lazily loaded; import from submodules directly:

    from optionkit.pricing import snap_to_valid_range, compute_taker_fee
    from optionkit.quotes import QuoteAggregator, QuoteStream
    from optionkit.exceptions import DomainRangeError
"""

__version__ = '0.4.0'


# Lazy imports to avoid loading the quote layer for pure-math callers
def __getattr__(name):
    """Lazy module loading for the most common entry points."""
    if name == 'QuoteAggregator':
        from .quotes.aggregator import QuoteAggregator
        return QuoteAggregator
    elif name == 'QuoteStream':
        from .quotes.stream import QuoteStream
        return QuoteStream
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'optionkit' has no attribute {name!r}")

__all__ = ['QuoteAggregator', 'QuoteStream', 'load_config', '__version__']
