"""Reserve Listing Review: Streamlit entry point.

Run with ``streamlit run src/dashboard/app.py``.
"""

import json

import streamlit as st

from src.dashboard.components.charts import rate_curve_chart, risk_parameters_chart
from src.data.loader import ParsedConfig, parse_config
from src.data.sample_listing import load_sample
from src.listing.encoder import ValidationError
from src.protocol.interest_rate import InterestRateModel


def _load_source() -> ParsedConfig | None:
    st.sidebar.header("Configuration")
    uploaded = st.sidebar.file_uploader("Listing configuration (JSON)", type=["json"])
    if uploaded is None:
        st.sidebar.caption("No file uploaded; showing the sample markets.")
        return load_sample()
    try:
        return parse_config(json.loads(uploaded.getvalue().decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        st.error(f"Could not read {uploaded.name}: {exc}")
        return None


def kpi_row(metrics: list[tuple[str, str]]) -> None:
    cols = st.columns(len(metrics))
    for col, (label, value) in zip(cols, metrics):
        with col:
            st.metric(label=label, value=value)


def main() -> None:
    st.set_page_config(
        page_title="Reserve Listing Review",
        page_icon="📋",
        layout="wide",
    )

    st.title("Reserve Listing Review")
    st.caption("Validation and canonical encoding before config engine submission")

    parsed = _load_source()
    if parsed is None:
        return

    report = parsed.validate()
    listings = [entry for group in parsed.groups for entry in group.listings]

    kpi_row(
        [
            ("Market Groups", str(len(parsed.groups))),
            ("Reserves", str(len(listings))),
            ("Hard Errors", str(len(report.errors))),
            ("Warnings", str(len(report.warnings))),
        ]
    )

    st.header("Diagnostics")
    if report.issues:
        st.dataframe(report.to_frame(), use_container_width=True, hide_index=True)
    else:
        st.success("No issues found")

    if listings:
        st.header("Risk Parameters")
        st.plotly_chart(risk_parameters_chart(listings), use_container_width=True)

        st.header("Interest Rate Curves")
        cols = st.columns(2)
        for i, listing in enumerate(listings):
            model = InterestRateModel(listing.rate_strategy_params, listing.reserve_factor)
            with cols[i % 2]:
                st.plotly_chart(
                    rate_curve_chart(model, title=f"{listing.asset_symbol} Rate Curve"),
                    use_container_width=True,
                )

    st.header("Submission")
    try:
        submission = parsed.encode()
    except ValidationError:
        st.error("Fix the hard errors above before a submission can be encoded.")
        return
    payload = submission.to_json()
    st.code(json.dumps(json.loads(payload), indent=2), language="json")
    st.download_button("Download submission", payload, file_name="submission.json")


if __name__ == "__main__":
    main()
