"""
Email Service using Resend

Handles the notification emails of the internship workflow. Every
template escapes user-supplied values before interpolation.
"""

import asyncio
import logging
import os
from html import escape

import resend

logger = logging.getLogger(__name__)

resend.api_key = os.getenv("RESEND_API_KEY")

EMAIL_FROM = os.getenv("EMAIL_FROM", "Staj Takip <noreply@university.edu.tr>")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

_STYLE = """
    body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
    .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
    .header { color: #1a365d; margin-bottom: 24px; }
    .button { display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
    .info-box { background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .code { font-size: 28px; letter-spacing: 6px; font-weight: bold; color: #1a365d; }
    .warning { background-color: #fef3c7; border: 1px solid #f59e0b; padding: 16px; border-radius: 8px; margin: 16px 0; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def _render(title: str, body: str, footer: str | None = None) -> str:
    """Wrap an already-escaped body in the shared layout."""
    footer_html = f"<p>{footer}</p>" if footer else ""
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                {footer_html}
                <p>Staj Takip Sistemi</p>
            </div>
        </div>
    </body>
    </html>
    """


def _remark_box(label: str, remark: str | None) -> str:
    if not remark:
        return ""
    return f'<div class="info-box"><p><strong>{label}:</strong></p><p>{escape(remark)}</p></div>'


# ============================================
# Application Notifications
# ============================================


async def send_advisor_approved_to_student(
    to_email: str,
    student_name: str,
    company_name: str,
    remark: str | None = None,
) -> bool:
    """Tell the student the advisor approved and the career center is next."""
    safe_company = escape(company_name)
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p>Your internship application for <strong>{safe_company}</strong> was approved by your advisor.</p>
            <p>It has been forwarded to the career center for review.</p>
            {_remark_box("Advisor remark", remark)}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Advisor approved your internship application ({safe_company})",
        html_content=_render("Advisor Approval", body),
    )


async def send_application_to_career_center(
    to_email: str,
    student_name: str,
    student_number: str | None,
    company_name: str,
    application_id: int,
) -> bool:
    """Tell the career center a new application awaits its review."""
    review_url = f"{FRONTEND_URL}/career-center/applications/{application_id}"
    body = f"""
            <p>An internship application approved by the advisor is awaiting your review.</p>
            <div class="info-box">
                <p><strong>Student:</strong> {escape(student_name)} ({escape(student_number or "-")})</p>
                <p><strong>Company:</strong> {escape(company_name)}</p>
            </div>
            <a href="{review_url}" class="button">Review Application</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"New internship application awaiting review: {escape(student_name)}",
        html_content=_render("Application Awaiting Review", body),
    )


async def send_application_rejected_to_student(
    to_email: str,
    student_name: str,
    company_name: str,
    rejected_by: str,
    reason: str,
) -> bool:
    """Tell the student an application was rejected and why."""
    safe_company = escape(company_name)
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p>Your internship application for <strong>{safe_company}</strong> was rejected by the {escape(rejected_by)}.</p>
            {_remark_box("Reason", reason)}
            <p>You may submit a new application once the issue has been addressed.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Internship application rejected ({safe_company})",
        html_content=_render("Application Rejected", body),
    )


async def send_career_center_approved_to_student(
    to_email: str,
    student_name: str,
    company_name: str,
    remark: str | None = None,
) -> bool:
    """Tell the student the company is now asked to confirm."""
    safe_company = escape(company_name)
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p>The career center approved your internship application for <strong>{safe_company}</strong>.</p>
            <p>The company has been sent a confirmation code and will confirm the internship.</p>
            {_remark_box("Career center remark", remark)}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Career center approved your internship application ({safe_company})",
        html_content=_render("Career Center Approval", body),
    )


async def send_company_credential(
    to_email: str,
    company_name: str,
    student_name: str,
    code: str,
    valid_days: int,
    subject_kind: str = "application",
) -> bool:
    """
    Send the one-time code a company officer uses to approve or reject.

    ``subject_kind`` is "application" or "diary".
    """
    what = "internship diary" if subject_kind == "diary" else "internship application"
    company_url = f"{FRONTEND_URL}/company"
    body = f"""
            <p>Dear {escape(company_name)} representative,</p>
            <p><strong>{escape(student_name)}</strong> has submitted an {what} naming your company and this email address as the contact.</p>
            <p>Use the following one-time code together with this email address to review it:</p>
            <p class="code">{escape(code)}</p>
            <a href="{company_url}" class="button">Open Company Portal</a>
            <div class="warning"><strong>This code is valid for {valid_days} days.</strong></div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Confirmation code for {what}: {escape(student_name)}",
        html_content=_render(
            "Company Confirmation Required",
            body,
            footer="If you do not recognize this request, you can ignore this email.",
        ),
    )


async def send_company_approved_to_student(
    to_email: str,
    student_name: str,
    company_name: str,
) -> bool:
    safe_company = escape(company_name)
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p><strong>{safe_company}</strong> confirmed your internship. Your application is now fully approved.</p>
            <p>Remember to upload your internship diary within 5 days after the internship ends.</p>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Internship approved ({safe_company})",
        html_content=_render("Internship Approved", body),
    )


async def send_company_approved_to_career_center(
    to_email: str,
    student_name: str,
    company_name: str,
    application_id: int,
) -> bool:
    body = f"""
            <p>The company confirmed the following internship:</p>
            <div class="info-box">
                <p><strong>Application:</strong> #{application_id}</p>
                <p><strong>Student:</strong> {escape(student_name)}</p>
                <p><strong>Company:</strong> {escape(company_name)}</p>
            </div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Company confirmed internship of {escape(student_name)}",
        html_content=_render("Company Confirmation Received", body),
    )


# ============================================
# Diary Notifications
# ============================================


async def send_diary_decision_to_student(
    to_email: str,
    student_name: str,
    company_name: str,
    decided_by: str,
    approved: bool,
    remark: str | None = None,
) -> bool:
    """Tell the student the company or advisor decided on the diary."""
    verdict = "approved" if approved else "rejected"
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p>Your internship diary for <strong>{escape(company_name)}</strong> was {verdict} by the {escape(decided_by)}.</p>
            {_remark_box("Remark", remark)}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Internship diary {verdict}",
        html_content=_render(f"Diary {verdict.title()}", body),
    )


# ============================================
# Exemption Notifications
# ============================================


async def send_exemption_decision_to_student(
    to_email: str,
    student_name: str,
    approved: bool,
    remark: str | None = None,
) -> bool:
    verdict = "approved" if approved else "rejected"
    body = f"""
            <p>Hello {escape(student_name)},</p>
            <p>Your internship exemption request was {verdict} by your advisor.</p>
            {_remark_box("Remark", remark)}
    """
    return await send_email(
        to_email=to_email,
        subject=f"Internship exemption request {verdict}",
        html_content=_render("Exemption Decision", body),
    )


# ============================================
# Reminders
# ============================================


async def send_pending_approval_reminder(
    to_email: str,
    stage_label: str,
    student_name: str,
    company_name: str,
    days_waiting: int,
) -> bool:
    """Remind a gatekeeper that an application has been waiting on them."""
    body = f"""
            <p>The following internship application has been waiting for {escape(stage_label)} for {days_waiting} days:</p>
            <div class="info-box">
                <p><strong>Student:</strong> {escape(student_name)}</p>
                <p><strong>Company:</strong> {escape(company_name)}</p>
            </div>
            <div class="warning"><strong>Please review it as soon as possible.</strong></div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Reminder: internship application awaiting {escape(stage_label)}",
        html_content=_render("Pending Approval Reminder", body),
    )
