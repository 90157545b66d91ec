"""Tests for the Plotly chart components."""

import pytest

from src.dashboard.components.charts import rate_curve_chart, risk_parameters_chart
from src.protocol.interest_rate import InterestRateModel


class TestRateCurveChart:
    def test_traces_in_percent(self, make_listing) -> None:
        model = InterestRateModel(make_listing().rate_strategy_params, 10_00)
        fig = rate_curve_chart(model, n_points=11)
        borrow, supply = fig.data
        assert borrow.name == "Borrow Rate"
        assert list(borrow.x)[-1] == pytest.approx(100.0)
        assert list(borrow.y)[-1] == pytest.approx(79.25)
        assert supply.name == "Supply Rate"
        assert list(supply.y)[0] == pytest.approx(0.0)

    def test_title(self, make_listing) -> None:
        model = InterestRateModel(make_listing().rate_strategy_params)
        fig = rate_curve_chart(model, title="USDC")
        assert fig.layout.title.text == "USDC"


class TestRiskParametersChart:
    def test_one_bar_series_per_parameter(self, make_pair) -> None:
        listings = list(make_pair("USDC/WETH").listings)
        fig = risk_parameters_chart(listings)
        assert [trace.name for trace in fig.data] == ["LTV", "Liq. Threshold", "Liq. Bonus"]
        ltv = fig.data[0]
        assert list(ltv.x) == ["USDC", "WETH"]
        assert list(ltv.y) == pytest.approx([0.0, 75.0])
