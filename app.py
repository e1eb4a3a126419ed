from flask import Flask, request, jsonify
import yfinance as yf
import pandas as pd
import requests
import calendar
import math
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union

app = Flask(__name__)

# ==============================================================================
# CONSTANTS
# ==============================================================================

# Time Constants
SECONDS_PER_DAY = 24 * 60 * 60

# Chart Constants
CHART_TARGET_POINTS = 100  # Chart sample is capped to roughly this many points

# Data Fetch Constants
HISTORY_PERIOD = '10y'  # Longest lookback in PERIODS is 10 years
HISTORY_INTERVAL = '1d'
MAX_FETCH_RETRIES = 3
RETRY_DELAY_SECONDS = 1

# Ticker Search Constants
SEARCH_URL = 'https://query2.finance.yahoo.com/v1/finance/search'
SEARCH_TIMEOUT_SECONDS = 10
SEARCH_HEADERS = {'User-Agent': 'Mozilla/5.0'}

# Shown when the search box is empty
POPULAR_SYMBOLS = [
    {'symbol': 'TSLA', 'name': 'Tesla', 'type': 'EQUITY'},
    {'symbol': 'NVDA', 'name': 'NVIDIA', 'type': 'EQUITY'},
    {'symbol': 'AAPL', 'name': 'Apple', 'type': 'EQUITY'},
    {'symbol': 'GOOGL', 'name': 'Alphabet', 'type': 'EQUITY'},
    {'symbol': 'META', 'name': 'Meta Platforms', 'type': 'EQUITY'},
    {'symbol': 'MSFT', 'name': 'Microsoft', 'type': 'EQUITY'},
    {'symbol': 'AMZN', 'name': 'Amazon', 'type': 'EQUITY'},
    {'symbol': 'QQQ', 'name': 'Invesco QQQ (Nasdaq-100 ETF)', 'type': 'ETF'},
    {'symbol': 'VOO', 'name': 'Vanguard S&P 500 ETF', 'type': 'ETF'},
    {'symbol': 'SPY', 'name': 'SPDR S&P 500 ETF', 'type': 'ETF'},
    {'symbol': '005930.KS', 'name': 'Samsung Electronics', 'type': 'EQUITY'},
    {'symbol': '000660.KS', 'name': 'SK hynix', 'type': 'EQUITY'},
]

# ==============================================================================
# END CONSTANTS
# ==============================================================================


# ==============================================================================
# DATA MODEL
# Value objects passed between the normalizer, the evaluator and the routes
# ==============================================================================

class InputShapeError(ValueError):
    """Raised when the price arrays or evaluation inputs cannot be used at all."""


@dataclass(frozen=True)
class PricePoint:
    timestamp: int
    adjusted_price: Optional[float]
    raw_price: Optional[float]

    @property
    def is_complete(self):
        return self.adjusted_price is not None and self.raw_price is not None

    @property
    def is_tradable(self):
        """Both prices present and positive; only such points can be a baseline."""
        return self.is_complete and self.adjusted_price > 0 and self.raw_price > 0


@dataclass(frozen=True)
class ChartPoint:
    display_date: str
    price: float

    def to_dict(self):
        return {'date': self.display_date, 'price': self.price}


@dataclass(frozen=True)
class DaysBack:
    """Baseline is the trading day nearest to `days` days before now."""
    days: int


@dataclass(frozen=True)
class CalendarYearAverage:
    """Baseline is the mean price over the calendar year `years_ago` years back."""
    years_ago: int


Lookback = Union[DaysBack, CalendarYearAverage]


@dataclass(frozen=True)
class PeriodSpec:
    label: str
    lookback: Lookback


@dataclass(frozen=True)
class PeriodResult:
    label: str
    baseline_raw_price: float
    baseline_adjusted_price: float
    implied_shares: float
    current_value: float
    profit: float
    profit_rate_percent: Optional[float]  # None when investment is zero
    is_profit: bool
    used_year_average: bool

    def to_dict(self):
        """Display form: raw baseline only, rounded the way the result cards show it."""
        return {
            'period': self.label,
            'baseline_price': round(self.baseline_raw_price, 2),
            'shares': round(self.implied_shares, 4),
            'current_value': round(self.current_value, 2),
            'profit': round(self.profit, 2),
            'profit_rate': round(self.profit_rate_percent, 2) if self.profit_rate_percent is not None else None,
            'is_profit': self.is_profit,
            'is_year_average': self.used_year_average,
        }


@dataclass(frozen=True)
class NormalizedSeries:
    series: List[PricePoint] = field(default_factory=list)
    chart_sample: List[ChartPoint] = field(default_factory=list)

    @property
    def current_raw_price(self):
        """Latest raw (tradable) price, or None for an empty series."""
        if not self.series:
            return None
        return self.series[-1].raw_price


# Fixed lookback table: up to 1 year matches a single day, longer periods
# average a whole calendar year
PERIODS = (
    PeriodSpec('1 week ago', DaysBack(7)),
    PeriodSpec('1 month ago', DaysBack(30)),
    PeriodSpec('3 months ago', DaysBack(90)),
    PeriodSpec('6 months ago', DaysBack(180)),
    PeriodSpec('1 year ago', DaysBack(365)),
    PeriodSpec('2 years ago', CalendarYearAverage(2)),
    PeriodSpec('3 years ago', CalendarYearAverage(3)),
    PeriodSpec('5 years ago', CalendarYearAverage(5)),
    PeriodSpec('10 years ago', CalendarYearAverage(10)),
)

# ==============================================================================
# END DATA MODEL
# ==============================================================================


# ==============================================================================
# PURE CALCULATION FUNCTIONS
# These functions have no side effects and are easily testable
# ==============================================================================

def is_price_present(value):
    """
    Check whether a price sample carries a usable value.

    None and NaN (as produced by pandas for missing rows) both count as absent.

    Example:
        >>> is_price_present(101.5)
        True
        >>> is_price_present(float('nan'))
        False
    """
    if value is None:
        return False
    try:
        return not pd.isna(value)
    except (TypeError, ValueError):
        return False


def clean_price(value):
    """Convert a price sample to float, mapping absent samples to None."""
    if not is_price_present(value):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InputShapeError(f"Price must be numeric, got {value!r}")
    if not math.isfinite(price):
        raise InputShapeError(f"Price must be finite, got {value!r}")
    return price


def calculate_implied_shares(investment, adjusted_baseline):
    """
    Calculate the share count a one-time purchase would have yielded.

    Uses the adjusted baseline so historical splits and dividends do not
    distort the share count.

    Args:
        investment: Dollar amount invested at the baseline
        adjusted_baseline: Split/dividend adjusted price at the baseline

    Returns:
        Number of shares (fractional)

    Example:
        >>> calculate_implied_shares(1000, 100)
        10.0
    """
    return investment / adjusted_baseline


def calculate_profit_rate(investment, profit):
    """
    Calculate profit as a percentage of the investment.

    Args:
        investment: Dollar amount invested
        profit: Current value minus investment

    Returns:
        Profit rate as percentage (e.g., 50.0 for a 50% gain)
        Returns None for a zero investment, where the rate is undefined

    Example:
        >>> calculate_profit_rate(1000, 500)
        50.0
    """
    if investment == 0:
        return None
    return profit / investment * 100


def calculate_period_return(period, adjusted_baseline, raw_baseline, current_raw_price, investment):
    """
    Derive the return figures for one lookback period from its baseline.

    Args:
        period: PeriodSpec being evaluated
        adjusted_baseline: Adjusted price used for the share math
        raw_baseline: Raw price shown to the user as the historical price
        current_raw_price: Latest tradable price
        investment: Dollar amount invested at the baseline

    Returns:
        PeriodResult

    Example:
        >>> result = calculate_period_return(PERIODS[0], 100, 100, 150, 1000)
        >>> result.current_value, result.profit
        (1500.0, 500.0)
    """
    shares = calculate_implied_shares(investment, adjusted_baseline)
    current_value = shares * current_raw_price
    profit = current_value - investment

    return PeriodResult(
        label=period.label,
        baseline_raw_price=raw_baseline,
        baseline_adjusted_price=adjusted_baseline,
        implied_shares=shares,
        current_value=current_value,
        profit=profit,
        profit_rate_percent=calculate_profit_rate(investment, profit),
        is_profit=profit >= 0,
        used_year_average=isinstance(period.lookback, CalendarYearAverage),
    )


def utc_year(timestamp):
    """Calendar year of an epoch timestamp, evaluated in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).year


def calendar_year_bounds(year):
    """
    Inclusive epoch-second window covering one UTC calendar year.

    Example:
        >>> calendar_year_bounds(2024)
        (1704067200, 1735689599)
    """
    start = calendar.timegm((year, 1, 1, 0, 0, 0))
    end = calendar.timegm((year, 12, 31, 23, 59, 59))
    return start, end


def format_display_date(timestamp, display_timezone=None):
    """
    ISO date of an epoch timestamp, in the exchange's time zone when known.

    Example:
        >>> format_display_date(1749913200, 'Asia/Seoul')  # 2025-06-15 00:00 KST
        '2025-06-15'
    """
    moment = pd.Timestamp(timestamp, unit='s', tz='UTC')
    if display_timezone:
        moment = moment.tz_convert(display_timezone)
    return moment.strftime('%Y-%m-%d')


def check_display_timezone(display_timezone):
    """
    Raises:
        InputShapeError: Unknown time zone name
    """
    if not display_timezone:
        return
    try:
        pd.Timestamp(0, unit='s', tz='UTC').tz_convert(display_timezone)
    except (KeyError, TypeError, ValueError):
        raise InputShapeError(f"Unknown time zone: {display_timezone!r}")

# ==============================================================================
# END PURE CALCULATION FUNCTIONS
# ==============================================================================


# ==============================================================================
# SERIES NORMALIZER
# Turns the upstream parallel arrays into an aligned PricePoint sequence
# ==============================================================================

def sample_chart_points(series, target_points=CHART_TARGET_POINTS, display_timezone=None):
    """
    Down-sample a series for chart display.

    Takes every `max(1, len // target_points)`-th point whose adjusted price is
    present. Purely cosmetic: the evaluator never looks at the sample.

    Args:
        series: List of PricePoint
        target_points: Approximate number of points wanted
        display_timezone: Exchange time zone name for the dates (UTC if None)

    Returns:
        List of ChartPoint with ISO dates and prices rounded to cents
    """
    stride = max(1, len(series) // target_points)
    return [
        ChartPoint(format_display_date(point.timestamp, display_timezone), round(point.adjusted_price, 2))
        for point in series[::stride]
        if point.adjusted_price is not None
    ]


def normalize_series(timestamps, adjusted_prices, raw_prices, display_timezone=None):
    """
    Align the upstream timestamp, adjusted-close and close arrays.

    When the adjusted-close array is entirely absent the raw prices stand in
    for it (degraded accuracy, not an error). Individual gaps are kept as
    None so indexing stays aligned.

    Args:
        timestamps: Epoch seconds, ascending
        adjusted_prices: Adjusted closes (may contain None/NaN), or None
        raw_prices: Closes; the last one is the current price
        display_timezone: Exchange time zone for chart dates only

    Returns:
        NormalizedSeries (empty for empty input)

    Raises:
        InputShapeError: Arrays differ in length, the latest raw price is
            missing, a price is infinite, timestamps go backwards, or the
            time zone is unknown

    Example:
        >>> normalized = normalize_series([1704067200], None, [100.0])
        >>> normalized.series[0].adjusted_price
        100.0
    """
    check_display_timezone(display_timezone)
    timestamps = list(timestamps) if timestamps is not None else []
    raw_prices = list(raw_prices) if raw_prices is not None else []
    if adjusted_prices is None:
        adjusted_prices = raw_prices
    else:
        adjusted_prices = list(adjusted_prices)

    if not (len(timestamps) == len(adjusted_prices) == len(raw_prices)):
        raise InputShapeError(
            f"Price arrays must have equal length "
            f"(timestamps={len(timestamps)}, adjusted={len(adjusted_prices)}, raw={len(raw_prices)})"
        )

    if not timestamps:
        return NormalizedSeries()

    if not is_price_present(raw_prices[-1]):
        raise InputShapeError("Latest raw price is missing; cannot determine the current price")

    series = []
    previous = None
    for index, (timestamp, adjusted, raw) in enumerate(zip(timestamps, adjusted_prices, raw_prices)):
        try:
            timestamp = int(timestamp)
        except (TypeError, ValueError):
            raise InputShapeError(f"Invalid timestamp at index {index}: {timestamp!r}")
        if previous is not None and timestamp < previous:
            raise InputShapeError(
                f"Timestamps must be in ascending order (index {index}: {timestamp} < {previous})"
            )
        series.append(PricePoint(timestamp, clean_price(adjusted), clean_price(raw)))
        previous = timestamp

    return NormalizedSeries(
        series=series,
        chart_sample=sample_chart_points(series, display_timezone=display_timezone),
    )

# ==============================================================================
# END SERIES NORMALIZER
# ==============================================================================


# ==============================================================================
# PERIOD EVALUATOR
# Baseline lookup per lookback variant, then the return math
# ==============================================================================

def find_nearest_point(series, target_timestamp):
    """
    Find the tradable point closest in time to a target timestamp.

    Points missing either price, or quoted at zero, are skipped. On a tie the chronologically
    earlier point wins, since only a strictly smaller distance replaces the
    current best.

    Args:
        series: List of PricePoint sorted by timestamp
        target_timestamp: Epoch seconds to match

    Returns:
        Closest PricePoint, or None if no point is tradable
    """
    nearest = None
    nearest_diff = None
    for point in series:
        if not point.is_tradable:
            continue
        diff = abs(point.timestamp - target_timestamp)
        if nearest_diff is None or diff < nearest_diff:
            nearest = point
            nearest_diff = diff
    return nearest


def average_year_prices(series, year):
    """
    Average adjusted and raw prices over one UTC calendar year.

    Args:
        series: List of PricePoint
        year: Calendar year to average

    Returns:
        Tuple (adjusted_average, raw_average), or None if the year has no
        tradable point

    Example:
        >>> ts = calendar_year_bounds(2022)[0]
        >>> points = [PricePoint(ts, 10.0, 11.0), PricePoint(ts + 86400, 30.0, 31.0)]
        >>> average_year_prices(points, 2022)
        (20.0, 21.0)
    """
    year_start, year_end = calendar_year_bounds(year)
    adjusted_sum = 0.0
    raw_sum = 0.0
    count = 0
    for point in series:
        if year_start <= point.timestamp <= year_end and point.is_tradable:
            adjusted_sum += point.adjusted_price
            raw_sum += point.raw_price
            count += 1
    if count == 0:
        return None
    return adjusted_sum / count, raw_sum / count


def resolve_baseline(series, lookback, now):
    """
    Resolve (adjusted_baseline, raw_baseline) for one lookback, or None.

    Raises:
        TypeError: Unknown lookback variant
    """
    if isinstance(lookback, DaysBack):
        point = find_nearest_point(series, now - lookback.days * SECONDS_PER_DAY)
        if point is None:
            return None
        return point.adjusted_price, point.raw_price
    if isinstance(lookback, CalendarYearAverage):
        return average_year_prices(series, utc_year(now) - lookback.years_ago)
    raise TypeError(f"Unsupported lookback: {lookback!r}")


def validate_evaluation_inputs(current_raw_price, investment):
    """
    Reject inputs that would make every period meaningless.

    Raises:
        InputShapeError: Current price missing, infinite or not positive, or investment
            negative or not a finite number
    """
    if (not is_price_present(current_raw_price) or not math.isfinite(current_raw_price)
            or current_raw_price <= 0):
        raise InputShapeError(f"Current price must be a positive finite number, got {current_raw_price!r}")
    if investment is None or not math.isfinite(investment):
        raise InputShapeError(f"Investment must be a finite number, got {investment!r}")
    if investment < 0:
        raise InputShapeError("Investment must be non-negative")


def evaluate_periods(series, current_raw_price, investment, periods, now):
    """
    Compute what `investment` made at each lookback period is worth now.

    Periods whose baseline cannot be resolved (no tradable point in the
    window) are left out, so the result may be shorter than `periods`.
    Output order follows `periods`.

    Args:
        series: List of PricePoint from normalize_series()
        current_raw_price: Latest tradable price
        investment: Dollar amount invested at each baseline
        periods: Sequence of PeriodSpec (normally PERIODS)
        now: Epoch seconds; the only clock the evaluator reads

    Returns:
        List of PeriodResult

    Raises:
        InputShapeError: See validate_evaluation_inputs()
    """
    if not series:
        return []

    validate_evaluation_inputs(current_raw_price, investment)

    results = []
    for period in periods:
        baseline = resolve_baseline(series, period.lookback, now)
        if baseline is None:
            continue
        adjusted_baseline, raw_baseline = baseline
        results.append(
            calculate_period_return(period, adjusted_baseline, raw_baseline, current_raw_price, investment)
        )
    return results


def build_backtest(symbol, timestamps, adjusted_prices, raw_prices, investment, now,
                   periods=PERIODS, display_timezone=None):
    """
    Run normalizer and evaluator and assemble the response for display.

    `display_timezone` only affects chart dates; period windows stay in UTC.

    Returns:
        dict with symbol, current_price, investment, periods and chart
    """
    normalized = normalize_series(timestamps, adjusted_prices, raw_prices, display_timezone)
    current_price = normalized.current_raw_price
    results = evaluate_periods(normalized.series, current_price, investment, periods, now)

    return {
        'symbol': symbol.upper() if symbol else None,
        'current_price': round(current_price, 2) if current_price is not None else None,
        'investment': investment,
        'periods': [result.to_dict() for result in results],
        'chart': [point.to_dict() for point in normalized.chart_sample],
    }

# ==============================================================================
# END PERIOD EVALUATOR
# ==============================================================================


# ==============================================================================
# DATA LAYER FUNCTIONS
# Fetching and unpacking upstream price data
# ==============================================================================

def fetch_price_history(symbol):
    """
    Fetch daily price history for the longest lookback from Yahoo Finance.

    Uses auto_adjust=False so the frame carries both 'Close' (raw) and
    'Adj Close' (split/dividend adjusted). Retries with linear backoff.

    Args:
        symbol: Ticker symbol (e.g., 'AAPL', '005930.KS')

    Returns:
        pandas DataFrame indexed by date, or None if no data could be fetched

    Example:
        >>> hist = fetch_price_history('AAPL')
        >>> 'Adj Close' in hist.columns
        True
    """
    for attempt in range(MAX_FETCH_RETRIES):
        try:
            stock = yf.Ticker(symbol)
            hist = stock.history(period=HISTORY_PERIOD, interval=HISTORY_INTERVAL, auto_adjust=False)

            if hist.empty:
                print(f"WARNING: {symbol} returned empty data (attempt {attempt + 1}/{MAX_FETCH_RETRIES})")
                if attempt < MAX_FETCH_RETRIES - 1:
                    time.sleep(RETRY_DELAY_SECONDS * (attempt + 1))
                    continue
                return None

            print(f"SUCCESS: Fetched {len(hist)} days of data for {symbol}")
            return hist

        except Exception as e:
            print(f"ERROR fetching price history for {symbol} (attempt {attempt + 1}/{MAX_FETCH_RETRIES}): {e}")
            if attempt < MAX_FETCH_RETRIES - 1:
                time.sleep(RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return None

    return None


def history_to_arrays(hist):
    """
    Split a yfinance history frame into the three parallel arrays.

    Naive date indexes are taken as UTC. A frame without 'Adj Close' yields
    None for the adjusted array so the normalizer falls back to raw prices.

    Returns:
        Tuple (timestamps, adjusted_prices or None, raw_prices)

    Raises:
        InputShapeError: Frame has no 'Close' column
    """
    if 'Close' not in hist.columns:
        raise InputShapeError("Price history has no 'Close' column")

    index = pd.to_datetime(hist.index, utc=True)
    timestamps = [int(ts.timestamp()) for ts in index]
    raw_prices = [clean_price(value) for value in hist['Close'].tolist()]
    if 'Adj Close' in hist.columns:
        adjusted_prices = [clean_price(value) for value in hist['Adj Close'].tolist()]
    else:
        adjusted_prices = None
    return timestamps, adjusted_prices, raw_prices


def history_timezone(hist):
    """Exchange time zone name of a yfinance frame's index, or None if naive."""
    tz = getattr(hist.index, 'tz', None)
    return str(tz) if tz is not None else None


def first_chart_result(payload):
    """
    Return `chart.result[0]` of a Yahoo chart API response.

    Raises:
        InputShapeError: Envelope is not shaped like a chart response
    """
    if not isinstance(payload, dict):
        raise InputShapeError("Chart response must be a JSON object")

    chart = payload.get('chart')
    if not isinstance(chart, dict):
        raise InputShapeError("Chart response has no 'chart' object")

    results = chart.get('result')
    if not isinstance(results, list) or not results:
        error = chart.get('error')
        description = error.get('description') if isinstance(error, dict) else None
        if description:
            raise InputShapeError(f"Chart response has no result: {description}")
        raise InputShapeError("Chart response has no result")

    result = results[0]
    if not isinstance(result, dict):
        raise InputShapeError("Chart result must be a JSON object")
    return result


def first_entry(container, key):
    """First dict in `container[key]`, or None when the list is absent or empty."""
    entries = container.get(key)
    if entries is None:
        return None
    if not isinstance(entries, list):
        raise InputShapeError(f"Chart '{key}' must be a list")
    if not entries:
        return None
    if not isinstance(entries[0], dict):
        raise InputShapeError(f"Chart '{key}' entries must be JSON objects")
    return entries[0]


def parse_chart_payload(payload):
    """
    Unpack a Yahoo chart API response into the three parallel arrays.

    Reads `chart.result[0].timestamp`, `indicators.adjclose[0].adjclose`
    (optional) and `indicators.quote[0].close`. Every level is type-checked,
    so a malformed envelope is an input error rather than a crash.

    Returns:
        Tuple (timestamps, adjusted_prices or None, raw_prices)

    Raises:
        InputShapeError: Envelope has no result, no close prices, or a level
            of the wrong type
    """
    result = first_chart_result(payload)

    indicators = result.get('indicators')
    if not isinstance(indicators, dict):
        raise InputShapeError("Chart response has no close prices")

    quote = first_entry(indicators, 'quote')
    raw_prices = quote.get('close') if quote else None
    if not isinstance(raw_prices, list):
        raise InputShapeError("Chart response has no close prices")

    adjusted_prices = None
    adjclose = first_entry(indicators, 'adjclose')
    if adjclose is not None:
        adjusted_prices = adjclose.get('adjclose')
        if adjusted_prices is not None and not isinstance(adjusted_prices, list):
            raise InputShapeError("Chart 'adjclose' prices must be a list")

    timestamps = result.get('timestamp')
    if timestamps is None:
        timestamps = []
    if not isinstance(timestamps, list):
        raise InputShapeError("Chart 'timestamp' must be a list")

    return timestamps, adjusted_prices, raw_prices


def chart_timezone(payload):
    """
    Exchange time zone named in `chart.result[0].meta`, or None.

    Example:
        >>> chart_timezone({'chart': {'result': [{'meta': {'exchangeTimezoneName': 'Asia/Seoul'}}]}})
        'Asia/Seoul'
    """
    meta = first_chart_result(payload).get('meta')
    if not isinstance(meta, dict):
        return None
    name = meta.get('exchangeTimezoneName')
    return name if isinstance(name, str) and name else None


def parse_investment(value):
    """
    Parse the investment amount from a request body.

    Raises:
        ValueError: Missing, not a number, or negative
    """
    if value is None or value == '':
        raise ValueError('Missing required fields')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError('Investment must be a number')
    if not math.isfinite(amount):
        raise ValueError('Investment must be a finite number')
    if amount < 0:
        raise ValueError('Investment must be non-negative')
    return amount

# ==============================================================================
# END DATA LAYER FUNCTIONS
# ==============================================================================


@app.route('/calculate', methods=['POST'])
def calculate():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    symbol = str(data.get('symbol') or '').strip().upper()

    if not symbol:
        return jsonify({'error': 'Missing required fields'}), 400

    try:
        investment = parse_investment(data.get('investment'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    hist = fetch_price_history(symbol)
    if hist is None:
        return jsonify({'error': 'No data found for this symbol'}), 404

    try:
        timestamps, adjusted_prices, raw_prices = history_to_arrays(hist)
        result = build_backtest(symbol, timestamps, adjusted_prices, raw_prices, investment,
                                now=int(time.time()), display_timezone=history_timezone(hist))
    except InputShapeError as e:
        print(f"ERROR: Unusable price history for {symbol}: {e}")
        return jsonify({'error': str(e)}), 400

    return jsonify(result)


@app.route('/evaluate', methods=['POST'])
def evaluate():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    symbol = str(data.get('symbol') or '').strip().upper()

    if 'chart' not in data:
        return jsonify({'error': 'Missing required fields'}), 400

    try:
        investment = parse_investment(data.get('investment'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    try:
        timestamps, adjusted_prices, raw_prices = parse_chart_payload(data['chart'])
        if not timestamps:
            return jsonify({'error': 'No data found in chart response'}), 404
        result = build_backtest(symbol, timestamps, adjusted_prices, raw_prices, investment,
                                now=int(time.time()), display_timezone=chart_timezone(data['chart']))
    except InputShapeError as e:
        return jsonify({'error': str(e)}), 400

    return jsonify(result)


@app.route('/search')
def search_ticker():
    query = request.args.get('q', '').strip()
    if not query:
        return jsonify(POPULAR_SYMBOLS)

    try:
        response = requests.get(
            SEARCH_URL,
            params={'q': query},
            headers=SEARCH_HEADERS,
            timeout=SEARCH_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        print(f"Search error: {e}")
        return jsonify([])

    suggestions = []
    for quote in data.get('quotes', []):
        if not quote.get('symbol'):
            continue
        suggestions.append({
            'symbol': quote.get('symbol'),
            'name': quote.get('shortname', quote.get('longname', '')),
            'type': quote.get('quoteType'),
            'exch': quote.get('exchange')
        })
    return jsonify(suggestions)

if __name__ == '__main__':
    # Production-ready configuration with environment variables
    port = int(os.environ.get('PORT', 8080))
    debug = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(debug=debug, host='0.0.0.0', port=port)
