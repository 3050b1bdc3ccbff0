"""
HTML bodies for transactional emails
"""
from html import escape
from typing import Tuple

FOOTER = """
        <hr style="margin: 30px 0; border: none; border-top: 1px solid #e5e7eb;">
        <p style="color: #666; font-size: 14px;">
          Price My Floor - Connecting you with verified flooring retailers
        </p>"""


def verification_code_email(code: str, ttl_minutes: int) -> Tuple[str, str]:
    subject = "Verify Your Quote Request"
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Verify Your Quote Request</h2>
        <p>Thank you for submitting your flooring quote request!</p>
        <p>To complete your submission, please enter this verification code:</p>
        <div style="background: #f5f5f5; padding: 20px; text-align: center; margin: 20px 0;">
          <h1 style="font-size: 36px; color: #EA580C; margin: 0; letter-spacing: 5px;">{escape(code)}</h1>
        </div>
        <p>This code will expire in {ttl_minutes} minutes.</p>
        <p>If you didn't request this quote, you can safely ignore this email.</p>{FOOTER}
      </div>
    """
    return subject, html


def _credentials_block(email: str, temp_password: str) -> str:
    return f"""
        <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
          <h3 style="margin-top: 0;">Your Login Credentials:</h3>
          <p><strong>Email:</strong> {escape(email)}</p>
          <p><strong>Temporary Password:</strong>
            <code style="background-color: #e5e7eb; padding: 4px 8px; border-radius: 4px;">{escape(temp_password)}</code></p>
        </div>
        <p><strong>Important:</strong> For security reasons, you will be required to change your password when you first log in.</p>"""


def _login_button(login_url: str) -> str:
    url = escape(login_url, quote=True)
    return f"""
        <div style="text-align: center; margin: 30px 0;">
          <a href="{url}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
            Login to Your Account
          </a>
        </div>"""


def retailer_welcome_email(
    email: str,
    business_name: str,
    contact_name: str,
    temp_password: str,
    login_url: str,
) -> Tuple[str, str]:
    subject = "Welcome to Price My Floor - Your Account is Approved!"
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">Welcome to Price My Floor!</h2>
        <p>Dear {escape(contact_name)},</p>
        <p>Congratulations! Your retailer application for <strong>{escape(business_name)}</strong> has been approved.</p>
        {_credentials_block(email, temp_password)}
        {_login_button(login_url)}
        <h3>Next Steps:</h3>
        <ol>
          <li>Sign in with your email and temporary password</li>
          <li>Create a new secure password when prompted</li>
          <li>Complete your retailer profile setup</li>
          <li>Start receiving leads!</li>
        </ol>
        <p>Welcome aboard!</p>
        <p><strong>The Price My Floor Team</strong></p>
        <p style="font-size: 12px; color: #6b7280;">
          This email contains sensitive login information. Please keep it secure and delete it after you've changed your password.
        </p>{FOOTER}
      </div>
    """
    return subject, html


def retailer_credentials_email(
    email: str,
    business_name: str,
    contact_name: str,
    temp_password: str,
    login_url: str,
) -> Tuple[str, str]:
    subject = "Price My Floor - Your Login Credentials"
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2563eb;">Your Login Credentials</h2>
        <p>Dear {escape(contact_name)},</p>
        <p>Here are your updated login credentials for <strong>{escape(business_name)}</strong>:</p>
        {_credentials_block(email, temp_password)}
        {_login_button(login_url)}{FOOTER}
      </div>
    """
    return subject, html


def _detail_rows(rows) -> str:
    return "".join(
        f"""
          <tr>
            <td style="padding: 8px 0; border-bottom: 1px solid #e9ecef; font-weight: bold; width: 150px;">{label}:</td>
            <td style="padding: 8px 0; border-bottom: 1px solid #e9ecef;">{escape(str(value)) if value else "Not provided"}</td>
          </tr>"""
        for label, value in rows
    )


def new_lead_email(
    business_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    postal_code: str,
    brand: str,
    square_footage,
    installation_required: bool,
    timeline: str,
    notes: str,
    payment_text: str,
    leads_url: str,
) -> Tuple[str, str]:
    """Lead delivery notice with the customer's contact and project details"""
    size = f"{square_footage} sq ft" if square_footage else "Not specified"
    subject = f"New Flooring Lead: {customer_name or 'Customer'} - {size}"
    customer_rows = _detail_rows([
        ("Name", customer_name),
        ("Email", customer_email),
        ("Phone", customer_phone),
        ("Postal Code", postal_code),
    ])
    project_rows = _detail_rows([
        ("Brand", brand or "Any brand"),
        ("Project Size", size),
        ("Installation", "Supply & Installation" if installation_required else "Supply Only"),
        ("Timeline", timeline),
    ])
    notes_block = ""
    if notes:
        notes_block = f"""
        <h3 style="color: #2c3e50;">Additional Details</h3>
        <p style="line-height: 1.6;">{escape(notes)}</p>"""
    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #2c3e50;">New Flooring Lead Available</h2>
        <p>Hi {escape(business_name)}, you have received a new verified lead from Price My Floor.</p>
        <h3 style="color: #2c3e50;">Customer Information</h3>
        <table style="width: 100%; border-collapse: collapse;">{customer_rows}
        </table>
        <h3 style="color: #2c3e50;">Project Details</h3>
        <table style="width: 100%; border-collapse: collapse;">{project_rows}
        </table>{notes_block}
        <p style="color: #27ae60; font-weight: bold;">{escape(payment_text)}</p>
        <p>Contact the customer within 24 hours for best results.</p>
        <div style="text-align: center; margin: 30px 0;">
          <a href="{escape(leads_url, quote=True)}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
            View Lead in Dashboard
          </a>
        </div>{FOOTER}
      </div>
    """
    return subject, html
