"""
Logistics Dashboard - Streamlit App

Monitors medical-device orders: status flow, device mix, aging alerts,
unassigned deliveries, practice ranking and stock levels.
"""

import os
from html import escape
import streamlit as st
import pandas as pd
from datetime import date, datetime, timezone
from dotenv import load_dotenv
from logistics.aggregation import (
    PENDING_CRITICAL_DAYS,
    calculate_age_days,
    device_chart_data,
    process_stock_levels,
    status_chart_data,
)
from logistics.insights import InsightRequester
from logistics.mock_data import DEFAULT_ORDER_COUNT, generate_mock_orders, generate_mock_stock
from logistics.models import ALL_DEVICES, DeviceType, OrderStatus, ViewMode, orders_to_records
from logistics.pdf_generator import ReportGenerationError, format_age_days, generate_dashboard_pdf
from logistics.state import DashboardState
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

# Page config
st.set_page_config(
    page_title="Logistics Dash",
    page_icon="🚚",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main-header {
        font-size: 2rem;
        color: #1e293b;
        font-weight: bold;
    }
    .insight-box {
        background-color: #1e293b;
        color: #cbd5e1;
        padding: 1rem;
        border-radius: 0.75rem;
        font-size: 0.8rem;
        font-style: italic;
        white-space: pre-wrap;
    }
</style>
""", unsafe_allow_html=True)

VIEW_TITLES = {
    ViewMode.OUTBOUND: "New / Replacement / Additional",
    ViewMode.RETURN: "Return Order Cases",
}

INSIGHT_POLL_SECONDS = 2


# =============================================================================
# SESSION STATE INITIALIZATION
# =============================================================================

def _load_dashboard() -> DashboardState:
    count = int(os.getenv("MOCK_ORDER_COUNT", DEFAULT_ORDER_COUNT))
    seed = os.getenv("MOCK_SEED")
    seed = int(seed) if seed else None
    logger.info(f"Loading {count} mock orders (seed={seed})")
    return DashboardState(
        orders=generate_mock_orders(count, seed=seed),
        stock=generate_mock_stock(seed=seed)
    )


if 'dashboard' not in st.session_state:
    st.session_state.dashboard = _load_dashboard()

if 'requester' not in st.session_state:
    st.session_state.requester = InsightRequester()

if 'insight_future' not in st.session_state:
    st.session_state.insight_future = None

if 'insight_generation' not in st.session_state:
    st.session_state.insight_generation = None

dashboard: DashboardState = st.session_state.dashboard


def _request_insights_if_changed():
    """Submit a new insight request when the filter generation has moved on"""
    if st.session_state.insight_generation == dashboard.generation:
        return
    ticket = dashboard.begin_insight_request()
    st.session_state.insight_future = st.session_state.requester.submit(ticket, dashboard.insight_summary())
    st.session_state.insight_generation = dashboard.generation


# =============================================================================
# SIDEBAR - VIEW SWITCH & INSIGHTS
# =============================================================================

with st.sidebar:
    st.markdown('<p class="main-header">Logistics Dash</p>', unsafe_allow_html=True)
    st.caption("INTELLIGENT SUPPLY CHAIN")
    st.markdown("---")

    view_label = st.radio(
        "View",
        options=[ViewMode.OUTBOUND, ViewMode.RETURN],
        index=0 if dashboard.view == ViewMode.OUTBOUND else 1,
        format_func=lambda v: "New Orders" if v == ViewMode.OUTBOUND else "Returns"
    )
    if view_label != dashboard.view:
        dashboard.set_view(view_label)

    st.markdown("---")

    if st.button("🔄 Reload Orders", use_container_width=True):
        fresh = _load_dashboard()
        dashboard.stock = fresh.stock
        dashboard.set_orders(fresh.orders)


# =============================================================================
# HEADER FILTERS
# =============================================================================

st.markdown(f'<p class="main-header">{VIEW_TITLES[dashboard.view]}</p>', unsafe_allow_html=True)
st.caption("Monitoring logistics flow across all practice centers.")

col1, col2, col3 = st.columns([1, 1, 2])
with col1:
    start = st.date_input("From", value=date.fromisoformat(dashboard.start_date))
with col2:
    end = st.date_input("To", value=date.fromisoformat(dashboard.end_date))
with col3:
    device_options = [ALL_DEVICES] + [d.value for d in DeviceType]
    current_device = dashboard.snapshot()[3]
    device = st.selectbox(
        "Device",
        options=device_options,
        index=device_options.index(current_device),
        format_func=lambda d: "All Devices" if d == ALL_DEVICES else d
    )

if (start.isoformat(), end.isoformat()) != (dashboard.start_date, dashboard.end_date):
    dashboard.set_date_range(start, end)
if device != current_device:
    dashboard.set_device_filter(device)

_request_insights_if_changed()

stats = dashboard.stats
rankings = dashboard.rankings
stock_levels = process_stock_levels(dashboard.stock)


@st.fragment(run_every=INSIGHT_POLL_SECONDS)
def insights_panel():
    """Pick up a finished insight request and show the current narrative"""
    future = st.session_state.insight_future
    if future is not None and future.done():
        try:
            result = future.result()
            dashboard.apply_insight(result.ticket, result.text)
        except Exception:
            logger.exception("Insight worker failed")
        st.session_state.insight_future = None

    st.markdown("**✨ AI Insights**")
    st.markdown(f'<div class="insight-box">{escape(dashboard.insight_text)}</div>', unsafe_allow_html=True)


with st.sidebar:
    insights_panel()


# =============================================================================
# TOP STATS ROW
# =============================================================================

col1, col2, col3, col4 = st.columns(4)

with col1:
    st.metric(
        "Total Orders" if dashboard.view == ViewMode.OUTBOUND else "Total Returns",
        stats.total_orders,
        help="Selected period volume"
    )
with col2:
    st.metric(
        "Delivered / Unassigned",
        stats.unassigned_delivered_count,
        delta="Needs patient assignment" if stats.unassigned_delivered_count else None,
        delta_color="inverse"
    )
with col3:
    st.metric("In Transit", stats.pending_deliveries, help="Currently with carrier")
with col4:
    if dashboard.view == ViewMode.RETURN:
        st.metric(
            "Return Success",
            f"{stats.return_percentage:.1f}%",
            help=f"{stats.returned_devices_count} successful returns"
        )
    else:
        st.metric(
            f"{PENDING_CRITICAL_DAYS}+ Day Lag",
            stats.aging_alerts.pending_over_7_days,
            delta="Critical shipping delays" if stats.aging_alerts.pending_over_7_days else None,
            delta_color="inverse"
        )

st.markdown("---")

tab1, tab2, tab3, tab4 = st.tabs(["📊 Overview", "🏆 Practices & Stock", "💾 Export Data", "📄 Generate PDF"])


# =============================================================================
# TAB 1: CHARTS
# =============================================================================

with tab1:
    col1, col2 = st.columns([2, 1])

    with col1:
        st.markdown("#### Order Volume Trend")
        if stats.trend_data:
            trend_df = pd.DataFrame([{'date': p.date, 'count': p.count} for p in stats.trend_data])
            st.area_chart(trend_df.set_index('date'))
        else:
            st.info("No orders in the selected period.")

    with col2:
        st.markdown("#### Status Breakdown")
        status_df = pd.DataFrame(status_chart_data(stats))
        st.bar_chart(status_df.set_index('name'))

    col1, col2 = st.columns(2)

    with col1:
        st.markdown("#### Device Distribution")
        device_df = pd.DataFrame(device_chart_data(stats), columns=['name', 'value'])
        if not device_df.empty:
            device_df['share'] = (device_df['value'] / device_df['value'].sum() * 100).round(0)
            st.dataframe(device_df.rename(columns={'name': 'Device', 'value': 'Orders', 'share': 'Share %'}),
                         hide_index=True, use_container_width=True)
            st.bar_chart(device_df.set_index('name')['value'])

    with col2:
        st.markdown("#### Unassigned Delivered Devices  `ACTION REQUIRED`")
        if stats.assignment_data:
            assign_df = pd.DataFrame(
                [{'name': r.name, 'Unassigned (Delivered)': r.unassigned, 'Total Orders': r.total}
                 for r in stats.assignment_data]
            )
            st.bar_chart(assign_df.set_index('name'), horizontal=True)
        else:
            st.success("✓ Every delivered device is assigned to a patient")


# =============================================================================
# TAB 2: RANKING, STOCK & BOTTLENECKS
# =============================================================================

with tab2:
    st.markdown("#### Practice & Clinic Ranking")
    if rankings:
        ranking_df = pd.DataFrame([r.to_dict() for r in rankings])
        st.dataframe(
            ranking_df[['rank', 'practice_name', 'clinic_name', 'order_count']].rename(columns={
                'rank': 'Rank', 'practice_name': 'Practice', 'clinic_name': 'Clinic', 'order_count': 'Order Volume'
            }),
            hide_index=True,
            use_container_width=True
        )
    else:
        st.info("No practices to rank for the current filters.")

    col1, col2 = st.columns([2, 1])

    with col1:
        st.markdown("#### Stock Management")
        stock_df = pd.DataFrame([
            {
                'Device Type': level.device_type.value,
                'In Stock': level.quantity,
                'Min/Max Target': f"{level.min_level} / {level.max_level}",
                'Fulfillment': level.fulfillment_pct,
                'Flag': 'RESTOCK' if level.is_critical else 'OK',
            }
            for level in stock_levels
        ])
        st.dataframe(
            stock_df,
            hide_index=True,
            use_container_width=True,
            column_config={
                'Fulfillment': st.column_config.ProgressColumn(min_value=0, max_value=100, format="%.0f%%")
            }
        )

    with col2:
        st.markdown("#### Efficiency Bottlenecks")
        aging = stats.aging_alerts
        if aging.pending_over_7_days > 0:
            st.error(f"**Carrier Delay:** {aging.pending_over_7_days} awaiting pickup > {PENDING_CRITICAL_DAYS}d")
        else:
            st.success("**Carrier Delay:** none")

        if stats.unassigned_delivered_count > 10:
            st.error(f"**Assignment Gap:** {stats.unassigned_delivered_count} delivered but idle")
        else:
            st.info(f"**Assignment Gap:** {stats.unassigned_delivered_count} delivered but idle")

        pending = [o for o in dashboard.filtered_orders if o.status == OrderStatus.PENDING]
        if pending:
            now = datetime.now(timezone.utc)
            oldest = max(calculate_age_days(o.created_date, now) for o in pending)
            st.caption(f"Oldest pending order: {format_age_days(oldest)}")


# =============================================================================
# TAB 3: EXPORT DATA
# =============================================================================

period = f"{dashboard.start_date} to {dashboard.end_date}"
file_suffix = f"{dashboard.view.value}_{dashboard.start_date}_{dashboard.end_date}"

with tab3:
    st.markdown("### Export Data to CSV")

    col1, col2 = st.columns(2)

    with col1:
        if dashboard.filtered_orders:
            df = pd.DataFrame(orders_to_records(dashboard.filtered_orders))
            st.download_button(
                "📥 Filtered Orders",
                df.to_csv(index=False),
                f"orders_{file_suffix}.csv",
                "text/csv"
            )

        unassigned = [o for o in dashboard.filtered_orders if o.is_unassigned_delivery]
        if unassigned:
            df = pd.DataFrame(orders_to_records(unassigned))
            st.download_button(
                "📥 Delivered / Unassigned",
                df.to_csv(index=False),
                f"unassigned_{file_suffix}.csv",
                "text/csv",
                type="primary"
            )

    with col2:
        if rankings:
            df = pd.DataFrame([r.to_dict() for r in rankings])
            st.download_button(
                "📥 Practice Ranking",
                df.to_csv(index=False),
                f"ranking_{file_suffix}.csv",
                "text/csv"
            )

        df = pd.DataFrame([level.to_dict() for level in stock_levels])
        st.download_button(
            "📥 Stock Levels",
            df.to_csv(index=False),
            "stock_levels.csv",
            "text/csv"
        )


# =============================================================================
# TAB 4: GENERATE PDF
# =============================================================================

with tab4:
    st.markdown("### Generate PDF Report")

    if st.button("📄 Generate PDF", type="primary"):
        with st.spinner("Generating PDF..."):
            try:
                pdf_buffer = generate_dashboard_pdf(
                    VIEW_TITLES[dashboard.view],
                    period,
                    stats,
                    rankings,
                    stock_levels,
                    dashboard.insight_text
                )
                st.success("✓ PDF generated successfully!")
                st.download_button(
                    "📥 Download PDF",
                    pdf_buffer,
                    f"logistics_report_{file_suffix}.pdf",
                    "application/pdf"
                )
            except ReportGenerationError as e:
                st.error(f"Error generating PDF: {e}")
            except Exception as e:
                st.error(f"Unexpected error: {e}")
                logger.exception("Error generating PDF")


# =============================================================================
# FOOTER
# =============================================================================

st.markdown("---")
st.markdown("""
<div style='text-align: center; color: #666;'>
    <small>Logistics Dash | Built with Streamlit</small>
</div>
""", unsafe_allow_html=True)
