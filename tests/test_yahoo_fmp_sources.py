import unittest
from unittest.mock import MagicMock

from quotedesk.errors import ConfigurationError, UpstreamErrorKind
from quotedesk.integrations.fmp import FmpQuoteSource
from quotedesk.integrations.providers import create_quote_source
from quotedesk.integrations.yahoo_chart import YahooChartQuoteSource
from quotedesk.integrations.alpha_vantage import AlphaVantageQuoteSource


def make_session(payload) -> MagicMock:
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session.get.return_value = response
    return session


class TestYahooChartQuoteSource(unittest.TestCase):
    def test_parses_chart_meta(self):
        payload = {
            "chart": {
                "result": [
                    {
                        "meta": {
                            "symbol": "AAPL",
                            "longName": "Apple Inc.",
                            "regularMarketPrice": 231.5,
                            "chartPreviousClose": 230.0,
                            "regularMarketDayHigh": 232.0,
                            "regularMarketDayLow": 229.1,
                            "regularMarketVolume": 45000000,
                            "regularMarketTime": 1767369600,
                        }
                    }
                ],
                "error": None,
            }
        }
        session = make_session(payload)
        quote = YahooChartQuoteSource(session=session).fetch("AAPL")

        self.assertEqual(quote.symbol, "AAPL")
        self.assertEqual(quote.price, 231.5)
        self.assertAlmostEqual(quote.change, 1.5)
        self.assertAlmostEqual(quote.change_pct, 1.5 / 230.0 * 100)
        self.assertEqual(quote.volume, 45000000)
        self.assertEqual(int(quote.ts.timestamp()), 1767369600)
        self.assertEqual(
            session.get.call_args.args[0],
            "https://query1.finance.yahoo.com/v8/finance/chart/AAPL",
        )

    def test_no_result_is_empty_response(self):
        payload = {"chart": {"result": [], "error": None}}
        result = YahooChartQuoteSource(session=make_session(payload)).try_fetch("AAPL")

        self.assertEqual(result.error_kind, UpstreamErrorKind.EMPTY_RESPONSE)

    def test_chart_error_is_parse_error(self):
        payload = {"chart": {"result": None, "error": {"code": "Not Found", "description": "No data found"}}}
        result = YahooChartQuoteSource(session=make_session(payload)).try_fetch("ZZZZ")

        self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR)
        self.assertEqual(result.detail, "No data found")


class TestFmpQuoteSource(unittest.TestCase):
    def test_parses_first_row(self):
        payload = [
            {
                "symbol": "TSLA",
                "name": "Tesla, Inc.",
                "price": 296.2,
                "changesPercentage": 0.36,
                "change": 1.06,
                "dayLow": 290.0,
                "dayHigh": 299.9,
                "marketCap": 950000000000,
                "volume": 80000000,
                "previousClose": 295.14,
                "timestamp": 1767369600,
            }
        ]
        session = make_session(payload)
        quote = FmpQuoteSource("key", session=session).fetch("TSLA")

        self.assertEqual(quote.price, 296.2)
        self.assertEqual(quote.change_pct, 0.36)
        self.assertEqual(quote.market_cap, 950000000000)
        self.assertEqual(quote.previous_close, 295.14)
        self.assertEqual(session.get.call_args.kwargs["params"], {"apikey": "key"})

    def test_empty_list_is_empty_response(self):
        result = FmpQuoteSource("key", session=make_session([])).try_fetch("TSLA")
        self.assertEqual(result.error_kind, UpstreamErrorKind.EMPTY_RESPONSE)

    def test_limit_message_is_rate_limited(self):
        payload = {"Error Message": "Limit Reach . Please upgrade your plan or visit our documentation"}
        result = FmpQuoteSource("key", session=make_session(payload)).try_fetch("TSLA")

        self.assertEqual(result.error_kind, UpstreamErrorKind.PROVIDER_RATE_LIMITED)

    def test_other_error_message_is_parse_error(self):
        payload = {"Error Message": "Invalid API KEY."}
        result = FmpQuoteSource("key", session=make_session(payload)).try_fetch("TSLA")

        self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR)


    def test_non_object_row_is_parse_error(self):
        for payload in ([None], ["TSLA"], [[1, 2]]):
            result = FmpQuoteSource("key", session=make_session(payload)).try_fetch("TSLA")

            self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR, payload)

    def test_infinite_price_is_parse_error(self):
        payload = [{"symbol": "TSLA", "price": "Infinity"}]
        result = FmpQuoteSource("key", session=make_session(payload)).try_fetch("TSLA")

        self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR)


class TestYahooChartMalformedPayloads(unittest.TestCase):
    def test_non_object_meta_is_parse_error(self):
        for meta in (["x"], "meta", 42):
            payload = {"chart": {"result": [{"meta": meta}], "error": None}}
            result = YahooChartQuoteSource(session=make_session(payload)).try_fetch("AAPL")

            self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR, meta)

    def test_non_numeric_market_time_is_parse_error(self):
        payload = {"chart": {"result": [{"meta": {"regularMarketPrice": 231.5, "regularMarketTime": "soon"}}]}}
        result = YahooChartQuoteSource(session=make_session(payload)).try_fetch("AAPL")

        self.assertEqual(result.error_kind, UpstreamErrorKind.PARSE_ERROR)


class TestProviderFactory(unittest.TestCase):
    def test_creates_known_providers(self):
        self.assertIsInstance(create_quote_source("alphavantage", "k"), AlphaVantageQuoteSource)
        self.assertIsInstance(create_quote_source("yahoo"), YahooChartQuoteSource)
        self.assertIsInstance(create_quote_source("fmp", "k", timeout_sec=3.0), FmpQuoteSource)

    def test_timeout_is_forwarded(self):
        self.assertEqual(create_quote_source("yahoo", timeout_sec=3.0).timeout_sec, 3.0)

    def test_key_requirements(self):
        self.assertTrue(AlphaVantageQuoteSource.requires_api_key)
        self.assertTrue(FmpQuoteSource.requires_api_key)
        self.assertFalse(YahooChartQuoteSource.requires_api_key)

    def test_unknown_provider_raises(self):
        with self.assertRaises(ConfigurationError):
            create_quote_source("bloomberg")


if __name__ == "__main__":
    unittest.main()
