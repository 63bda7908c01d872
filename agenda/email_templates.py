"""
MJML Email Templates for appointment notifications
"""

from html import escape
from typing import Optional

THEME = {
    "primary": "#6366f1",
    "background": "#f8fafc",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="18px 40px" font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
      </mj-body>
    </mjml>
    """


def _detail_rows(details: list[tuple[str, Optional[str]]]) -> str:
    rows = "".join(
        f"""<tr>
          <td style="padding: 6px 0; color: {THEME['text_muted']};">{label}</td>
          <td style="padding: 6px 0; font-weight: 600;">{escape(value)}</td>
        </tr>"""
        for label, value in details
        if value
    )
    return f"""
    <mj-table padding="8px 0 24px 0" border="none">
      {rows}
    </mj-table>
    """


def appointment_details(
    client_name: str,
    service_name: str,
    appointment_date: str,
    appointment_time: str,
    price: Optional[str],
    client_phone: Optional[str],
    client_email: Optional[str],
) -> str:
    return _detail_rows(
        [
            ("Client", client_name),
            ("Service", service_name),
            ("Date", appointment_date),
            ("Time", appointment_time),
            ("Price", price),
            ("Phone", client_phone),
            ("Email", client_email),
        ]
    )


def appointment_created_template(business_name: str, details: str, dashboard_url: str) -> str:
    """New booking notification for the provider"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 16px 0">
      A new appointment was booked with {escape(business_name)}.
    </mj-text>
    {details}
    """
    return get_base_template(
        title="New appointment",
        preview_text="A client just booked an appointment",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Open agenda",
    )


def appointment_cancelled_template(
    business_name: str, details: str, reason: Optional[str], dashboard_url: str
) -> str:
    """Cancellation notification for the provider"""
    reason_section = ""
    if reason:
        reason_section = f"""
        <mj-text color="{THEME['danger']}" padding="0 0 16px 0">
          Reason: {escape(reason)}
        </mj-text>
        """
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 16px 0">
      An appointment with {escape(business_name)} was cancelled. The time is available again.
    </mj-text>
    {reason_section}
    {details}
    """
    return get_base_template(
        title="Appointment cancelled",
        preview_text="An appointment was cancelled",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Open agenda",
    )
