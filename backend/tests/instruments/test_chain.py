"""Tests for option chain assembly and ATM strike selection."""

from app.instruments.chain import ChainRow, atm_strike, build_option_chain, leg_tokens


class TestBuildOptionChain:
    def test_groups_by_strike(self, records):
        rows = build_option_chain(r for r in records if r.name == "NIFTY" and r.token < 9100)
        assert [row.strike for row in rows] == [24300, 24350, 24400]
        assert rows[0].call.token == 9001
        assert rows[0].put.token == 9002
        assert rows[2].put is None

    def test_ignores_non_options(self, records):
        rows = build_option_chain(r for r in records if r.name in ("HDFCBANK", "GOLD"))
        assert rows == []

    def test_leg_tokens(self, records):
        rows = build_option_chain(r for r in records if r.name == "NIFTY" and r.token < 9100)
        assert leg_tokens(rows) == [9001, 9002, 9003, 9004, 9005]

    def test_row_tokens_skip_missing_leg(self):
        assert ChainRow(strike=100.0).tokens() == []


class TestAtmStrike:
    def test_nearest_strike(self):
        assert atm_strike([24300, 24350, 24400], 24362.4) == 24350

    def test_unsorted_strikes(self):
        assert atm_strike([24400, 24300, 24350], 24390) == 24400

    def test_tie_goes_to_lower_strike(self):
        assert atm_strike([24300, 24350, 24400], 24325) == 24300

    def test_no_spot_price(self):
        assert atm_strike([24300, 24350], None) is None
        assert atm_strike([24300, 24350], 0.0) is None

    def test_no_strikes(self):
        assert atm_strike([], 24350) is None

    def test_returns_plain_float(self):
        assert type(atm_strike([100, 200], 160)) is float
