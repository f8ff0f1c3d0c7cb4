"""
PDF Generator Module

Generates a printable snapshot of the logistics dashboard.
Uses xhtml2pdf for HTML/CSS to PDF conversion.
"""

from datetime import datetime
from html import escape
from typing import List, Optional
from io import BytesIO
import logging
from xhtml2pdf import pisa

from logistics.models import DashboardStats, PracticeStats, StockLevel

logger = logging.getLogger(__name__)

# Report colours
COLOR_DARK_BLUE = "#1e293b"  # Headers
COLOR_NAVY = "#334155"       # Table headers
COLOR_RED = "#e11d48"        # ACTION blocks
COLOR_GREEN = "#10b981"      # OK flags
COLOR_GREY = "#64748b"       # Grey text


class ReportGenerationError(Exception):
    """Raised when xhtml2pdf fails to render the report"""
    pass


class LogisticsReportPDFGenerator:
    """
    Builds the dashboard report as HTML and renders it to PDF.
    """

    def __init__(self, view_label: str, period: str):
        """
        Initialize PDF generator.

        Args:
            view_label: Dashboard view title (e.g., "New / Replacement / Additional")
            period: Filtered date range (e.g., "2024-01-01 to 2024-02-01")
        """
        self.view_label = view_label
        self.period = period

    def generate(
        self,
        stats: DashboardStats,
        rankings: List[PracticeStats],
        stock_levels: List[StockLevel],
        insights: Optional[str] = None
    ) -> BytesIO:
        """
        Generate PDF report from the current dashboard views.

        Args:
            stats: Aggregated stats for the filtered orders
            rankings: Practice ranking rows
            stock_levels: Stock rows with restock flags
            insights: Narrative text (optional)

        Returns:
            BytesIO buffer containing PDF data

        Raises:
            ReportGenerationError: If xhtml2pdf reports an error
        """
        logger.info(f"Generating PDF for {self.view_label} - {self.period}")

        html_content = self.build_html(stats, rankings, stock_levels, insights)

        pdf_buffer = BytesIO()
        pisa_status = pisa.CreatePDF(
            html_content,
            dest=pdf_buffer
        )

        if pisa_status.err:
            logger.error(f"PDF generation failed with error code: {pisa_status.err}")
            raise ReportGenerationError(f"PDF generation failed: {pisa_status.err}")

        pdf_buffer.seek(0)
        logger.info("PDF generated successfully")
        return pdf_buffer

    def _get_css(self) -> str:
        """Get CSS styling for the PDF (xhtml2pdf compatible)"""
        return f"""
        @page {{
            size: a4;
            margin: 2cm 1.5cm;
        }}

        body {{
            font-family: Arial, Helvetica, sans-serif;
            font-size: 10pt;
            color: #333;
            line-height: 1.5;
        }}

        .header {{
            text-align: right;
            font-size: 8pt;
            color: {COLOR_GREY};
            margin-bottom: 20px;
        }}

        h1 {{
            color: {COLOR_DARK_BLUE};
            font-size: 18pt;
            font-weight: bold;
            margin-bottom: 30px;
            border-bottom: 2px solid {COLOR_DARK_BLUE};
            padding-bottom: 10px;
        }}

        h2 {{
            color: {COLOR_DARK_BLUE};
            font-size: 13pt;
            font-weight: bold;
            margin-top: 30px;
            margin-bottom: 15px;
        }}

        table {{
            width: 100%;
            border-collapse: collapse;
            margin: 15px 0;
        }}

        th {{
            background-color: {COLOR_NAVY};
            color: white;
            padding: 10px 12px;
            text-align: left;
            font-weight: bold;
            font-size: 9pt;
        }}

        td {{
            padding: 8px 12px;
            border: 1px solid #ddd;
            font-size: 9pt;
        }}

        .action-block {{
            background-color: #fff1f2;
            border-left: 4px solid {COLOR_RED};
            padding: 15px;
            margin: 20px 0;
        }}

        .action-label {{
            color: {COLOR_RED};
            font-weight: bold;
            font-size: 11pt;
            margin-bottom: 10px;
        }}

        .note {{
            font-style: italic;
            font-size: 9pt;
            color: {COLOR_GREY};
            margin: 10px 0;
        }}

        .section {{
            margin-bottom: 40px;
        }}

        .metric-value {{
            font-weight: bold;
            color: {COLOR_DARK_BLUE};
        }}

        .warning {{
            color: {COLOR_RED};
            font-weight: bold;
        }}

        .success {{
            color: {COLOR_GREEN};
            font-weight: bold;
        }}
        """

    def build_html(
        self,
        stats: DashboardStats,
        rankings: List[PracticeStats],
        stock_levels: List[StockLevel],
        insights: Optional[str] = None
    ) -> str:
        """Build complete HTML document with embedded CSS"""
        generated = datetime.now().strftime('%Y-%m-%d %H:%M')

        html = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <title>Logistics Dashboard - {escape(self.view_label)} - {escape(self.period)}</title>
            <style>
                {self._get_css()}
            </style>
        </head>
        <body>
            <div class="header">
                <strong>Logistics Dash</strong><br>
                <small>Generated {generated}</small>
            </div>

            <h1>{escape(self.view_label)} – {escape(self.period)}</h1>
        """

        html += self._build_summary_section(stats)
        html += self._build_breakdown_section(stats)
        html += self._build_assignment_section(stats)
        html += self._build_ranking_section(rankings)
        html += self._build_stock_section(stock_levels)

        if insights:
            html += self._build_insights_section(insights)

        html += """
        </body>
        </html>
        """

        return html

    def _build_summary_section(self, stats: DashboardStats) -> str:
        """Headline figures and aging alerts"""
        aging = stats.aging_alerts
        html = f"""
        <div class="section">
            <h2>1. Headline figures</h2>
            <table>
                <tr>
                    <th>Metric</th>
                    <th>Value</th>
                </tr>
                <tr><td>Total orders</td><td class="metric-value">{stats.total_orders}</td></tr>
                <tr><td>Pending</td><td class="metric-value">{stats.pending_orders}</td></tr>
                <tr><td>In transit</td><td class="metric-value">{stats.pending_deliveries}</td></tr>
                <tr><td>Delivered / unassigned</td><td class="metric-value">{stats.unassigned_delivered_count}</td></tr>
                <tr><td>Return success</td><td class="metric-value">{format_percentage(stats.return_percentage)}</td></tr>
                <tr><td>Pending &gt; 7 days</td><td class="metric-value">{aging.pending_over_7_days}</td></tr>
                <tr><td>Pending &gt; 1 day</td><td class="metric-value">{aging.not_created_over_1_day}</td></tr>
            </table>
        """

        if aging.pending_over_7_days > 0:
            html += f"""
            <div class="action-block">
                <div class="action-label">ACTION:</div>
                <p>{aging.pending_over_7_days} orders have been awaiting pickup for more than a week.</p>
            </div>
            """

        html += """
        </div>
        """
        return html

    def _build_breakdown_section(self, stats: DashboardStats) -> str:
        """Status and device counts"""
        html = """
        <div class="section">
            <h2>2. Status and device breakdown</h2>
            <table>
                <tr>
                    <th>Status</th>
                    <th>Orders</th>
                </tr>
        """

        for status, count in stats.orders_by_status.items():
            html += f"""
                <tr>
                    <td>{status.value}</td>
                    <td class="metric-value">{count}</td>
                </tr>
            """

        html += """
            </table>
            <table>
                <tr>
                    <th>Device</th>
                    <th>Orders</th>
                    <th>Share</th>
                </tr>
        """

        for device, count in stats.orders_by_device.items():
            share = count / stats.total_orders * 100 if stats.total_orders else 0
            html += f"""
                <tr>
                    <td>{device.value}</td>
                    <td class="metric-value">{count}</td>
                    <td>{format_percentage(share)}</td>
                </tr>
            """

        html += """
            </table>
        </div>
        """
        return html

    def _build_assignment_section(self, stats: DashboardStats) -> str:
        """Delivered devices not yet linked to a patient"""
        html = """
        <div class="section">
            <h2>3. Unassigned delivered devices</h2>
        """

        if not stats.assignment_data:
            html += """
            <p class="success">Every delivered device is assigned to a patient.</p>
        </div>
            """
            return html

        html += """
            <table>
                <tr>
                    <th>Device</th>
                    <th>Unassigned (Delivered)</th>
                    <th>Total Orders</th>
                </tr>
        """

        for row in stats.assignment_data:
            html += f"""
                <tr>
                    <td>{row.name}</td>
                    <td class="warning">{row.unassigned}</td>
                    <td>{row.total}</td>
                </tr>
            """

        html += """
            </table>
            <div class="action-block">
                <div class="action-label">ACTION:</div>
                <p>Sync the patient registry and assign the delivered devices listed above.</p>
            </div>
        </div>
        """
        return html

    def _build_ranking_section(self, rankings: List[PracticeStats]) -> str:
        """Practice & clinic leaderboard"""
        html = """
        <div class="section">
            <h2>4. Practice &amp; clinic ranking</h2>
            <table>
                <tr>
                    <th>Rank</th>
                    <th>Practice</th>
                    <th>Clinic</th>
                    <th>Order Volume</th>
                </tr>
        """

        for row in rankings:
            html += f"""
                <tr>
                    <td>{row.rank}</td>
                    <td>{escape(row.practice_name)}</td>
                    <td>{escape(row.clinic_name)}</td>
                    <td class="metric-value">{row.order_count}</td>
                </tr>
            """

        if not rankings:
            html += """
                <tr><td colspan="4" class="note">No orders in the selected period.</td></tr>
            """

        html += """
            </table>
        </div>
        """
        return html

    def _build_stock_section(self, stock_levels: List[StockLevel]) -> str:
        """Stock table with restock flags"""
        html = """
        <div class="section">
            <h2>5. Stock management</h2>
            <table>
                <tr>
                    <th>Device Type</th>
                    <th>In Stock</th>
                    <th>Min/Max Target</th>
                    <th>Fulfillment</th>
                </tr>
        """

        for level in stock_levels:
            flag = '<span class="warning">RESTOCK</span>' if level.is_critical else '<span class="success">OK</span>'
            html += f"""
                <tr>
                    <td>{level.device_type.value}</td>
                    <td class="metric-value">{level.quantity}</td>
                    <td>{level.min_level} / {level.max_level}</td>
                    <td>{format_percentage(level.fulfillment_pct)} {flag}</td>
                </tr>
            """

        html += """
            </table>
        </div>
        """
        return html

    def _build_insights_section(self, insights: str) -> str:
        body = escape(insights).replace('\n', '<br>')
        return f"""
        <div class="section">
            <h2>6. AI insights</h2>
            <p class="note">{body}</p>
        </div>
        """


def generate_dashboard_pdf(
    view_label: str,
    period: str,
    stats: DashboardStats,
    rankings: List[PracticeStats],
    stock_levels: List[StockLevel],
    insights: Optional[str] = None,
    output_path: Optional[str] = None
) -> BytesIO:
    """
    Generate a complete dashboard PDF.

    Args:
        view_label: Dashboard view title
        period: Filtered date range
        stats: Aggregated stats
        rankings: Practice ranking rows
        stock_levels: Stock rows
        insights: Narrative text (optional)
        output_path: Optional path to save PDF file

    Returns:
        BytesIO buffer with PDF data
    """
    generator = LogisticsReportPDFGenerator(view_label, period)
    pdf_buffer = generator.generate(stats, rankings, stock_levels, insights)

    # Optionally save to file
    if output_path:
        with open(output_path, 'wb') as f:
            f.write(pdf_buffer.getvalue())
        logger.info(f"PDF saved to {output_path}")

    pdf_buffer.seek(0)
    return pdf_buffer


def format_percentage(value: float) -> str:
    """Format a percentage with one decimal place"""
    return f"{value:.1f}%"


def format_age_days(days: int) -> str:
    """Format age in days"""
    if days == 0:
        return "Today"
    elif days == 1:
        return "1 day"
    else:
        return f"{days} days"
