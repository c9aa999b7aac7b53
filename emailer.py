"""
Credentials email sent to the admin of a newly registered company.
"""
import logging
import smtplib
from email.mime.text import MIMEText

from config import LOGIN_URL, SMTP_FROM, SMTP_HOST, SMTP_PASS, SMTP_PORT, SMTP_USER

logger = logging.getLogger(__name__)


class EmailError(Exception):
    pass


def render_credentials_email(to_email: str, password: str, login_link: str) -> str:
    return f"""
    <div style="font-family:Arial,sans-serif;background:#f4f4f4;padding:20px">
      <div style="max-width:600px;margin:0 auto;background:#fff;padding:40px;border-radius:8px;text-align:center">
        <h2 style="color:#333">Welcome to Amasqis.ai</h2>
        <p style="color:#666">Your company has been successfully registered and verified.</p>
        <p style="color:#666">Here are your company admin login details:</p>
        <p><b>Email:</b> {to_email}<br><b>Password:</b> {password}</p>
        <p><a href="{login_link}" style="background:#6c4eff;color:#fff;padding:12px 24px;text-decoration:none;border-radius:6px;display:inline-block">Log In Now</a></p>
        <p style="font-size:12px;color:#ccc">Please do not reply to this email.</p>
      </div>
    </div>
    """


def send_credentials_email(to_email: str, company_name: str, password: str, login_link: str = LOGIN_URL) -> None:
    msg = MIMEText(render_credentials_email(to_email, password, login_link), "html")
    msg["Subject"] = f"[{company_name}] Your login credentials"
    msg["From"] = f"HRMS TOOL <{SMTP_FROM}>"
    msg["To"] = to_email

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=10) as server:
            if SMTP_USER:
                server.login(SMTP_USER, SMTP_PASS)
            server.sendmail(SMTP_FROM, [to_email], msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to_email, e)
        raise EmailError("Email sending failed")
    logger.info("Credentials email sent to %s", to_email)
