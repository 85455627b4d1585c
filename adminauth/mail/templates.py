from __future__ import annotations

from html import escape

PASSWORD_RESET_SUBJECT = "Password Reset Request for your Admin Account"

PASSWORD_RESET_HTML = """\
<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
  <h2 style="color: #0056b3;">Password Reset Request</h2>
  <p>You are receiving this because you (or someone else) requested a password reset for your account.</p>
  <p>Please click the following link to complete the process:</p>
  <p style="margin: 20px 0;">
    <a href="{link}" style="background-color: #007bff; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; display: inline-block;">Reset Your Password</a>
  </p>
  <p>Or copy and paste this into your browser:</p>
  <p><code style="word-break: break-all;">{link}</code></p>
  <p>This link will expire in {expires_in}.</p>
  <p>If you did not request this, please ignore this email and your password will remain unchanged.</p>
  <hr style="border: 0; border-top: 1px solid #eee; margin: 20px 0;">
  <p style="font-size: 0.8em; color: #666;">This is an automated email, please do not reply.</p>
</div>
"""


def _humanize_minutes(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def render_password_reset_email(reset_link: str, expires_minutes: int) -> tuple[str, str]:
    html_body = PASSWORD_RESET_HTML.format(
        link=escape(reset_link, quote=True),
        expires_in=_humanize_minutes(expires_minutes),
    )
    return PASSWORD_RESET_SUBJECT, html_body
