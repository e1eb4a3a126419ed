"""
Shared test fixtures and utilities for the lookback return calculator tests.

Builders for the three input shapes the app consumes: plain parallel arrays
(normalizer/evaluator), yfinance history frames (data layer) and Yahoo chart
API envelopes (/evaluate).

Usage:
    from conftest import make_daily_series, NOW

    def test_something():
        timestamps, adjusted, raw = make_daily_series([100, 110, 120])
        normalized = normalize_series(timestamps, adjusted, raw)
"""

import calendar

import pandas as pd
from unittest.mock import MagicMock

SECONDS_PER_DAY = 24 * 60 * 60

# Fixed clock for every test: 2025-06-15 00:00:00 UTC
NOW = calendar.timegm((2025, 6, 15, 0, 0, 0))


def utc_timestamp(year, month, day, hour=0, minute=0, second=0):
    """Epoch seconds for a UTC wall-clock time"""
    return calendar.timegm((year, month, day, hour, minute, second))


def make_daily_series(raw_prices, adjusted_prices=None, end=NOW):
    """
    Build parallel arrays with one point per day, the last one at `end`.

    Args:
        raw_prices: List of closes (None allowed for gaps)
        adjusted_prices: Optional list of adjusted closes; defaults to a copy
            of raw_prices. Pass False to get None (no adjusted data at all).
        end: Timestamp of the last point

    Returns:
        (timestamps, adjusted_prices, raw_prices)

    Example:
        >>> ts, adj, raw = make_daily_series([100, 150])
        >>> ts[-1] - ts[0]
        86400
    """
    count = len(raw_prices)
    timestamps = [end - (count - 1 - i) * SECONDS_PER_DAY for i in range(count)]
    if adjusted_prices is False:
        adjusted = None
    elif adjusted_prices is None:
        adjusted = list(raw_prices)
    else:
        adjusted = list(adjusted_prices)
    return timestamps, adjusted, list(raw_prices)


def make_year_series(start, end, price=100.0):
    """One flat-priced point per day from `start` to `end` inclusive (epoch seconds)"""
    timestamps = list(range(start, end + 1, SECONDS_PER_DAY))
    prices = [price] * len(timestamps)
    return timestamps, list(prices), list(prices)


def create_mock_history(closes, adj_closes=None, end_date='2025-06-15', include_adjusted=True):
    """
    Create a yfinance-style history DataFrame (auto_adjust=False layout).

    Args:
        closes: List of raw closing prices (one per day)
        adj_closes: Optional adjusted closes; defaults to closes
        end_date: Date of the last row
        include_adjusted: Set False to drop the 'Adj Close' column

    Returns:
        pandas DataFrame indexed by a daily DatetimeIndex
    """
    num_days = len(closes)
    dates = pd.date_range(end=end_date, periods=num_days, freq='D')

    frame = {
        'Open': closes,
        'High': closes,
        'Low': closes,
        'Close': closes,
        'Volume': [1000000] * num_days,
    }
    if include_adjusted:
        frame['Adj Close'] = adj_closes if adj_closes is not None else closes

    return pd.DataFrame(frame, index=dates)


def create_mock_ticker(closes, adj_closes=None, end_date='2025-06-15', include_adjusted=True):
    """
    Create a mock yfinance Ticker whose history() returns a prepared frame.

    Example:
        >>> mock = create_mock_ticker([100, 110, 120])
        >>> with patch('app.yf.Ticker', return_value=mock):
        ...     hist = fetch_price_history('TEST')
    """
    mock_ticker = MagicMock()
    mock_ticker.history.return_value = create_mock_history(
        closes, adj_closes=adj_closes, end_date=end_date, include_adjusted=include_adjusted
    )
    return mock_ticker


def make_chart_payload(timestamps, closes, adj_closes=None, include_adjusted=True):
    """Build a Yahoo chart API response envelope"""
    indicators = {'quote': [{'close': closes, 'open': closes}]}
    if include_adjusted:
        indicators['adjclose'] = [{'adjclose': adj_closes if adj_closes is not None else closes}]

    return {
        'chart': {
            'result': [{
                'meta': {'symbol': 'TEST', 'currency': 'USD'},
                'timestamp': timestamps,
                'indicators': indicators,
            }],
            'error': None,
        }
    }
