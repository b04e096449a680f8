"""
Email delivery through the `send-email` HTTP function.
The function takes `to`, `from`, `subject` and `html` and relays them to the mail provider.
"""
import os
import re
import logging
import requests
from django.conf import settings

logger = logging.getLogger(__name__)

EMAIL_FUNCTION_URL = getattr(
    settings,
    'EMAIL_FUNCTION_URL',
    os.getenv('EMAIL_FUNCTION_URL', '')
)

EMAIL_FUNCTION_KEY = getattr(
    settings,
    'EMAIL_FUNCTION_KEY',
    os.getenv('EMAIL_FUNCTION_KEY', '')
)

EMAIL_DEFAULT_FROM = getattr(
    settings,
    'EMAIL_DEFAULT_FROM',
    os.getenv('EMAIL_DEFAULT_FROM', 'Maison Jove <hello@maisonjove.com>')
)

EMAIL_FUNCTION_TIMEOUT = getattr(
    settings,
    'EMAIL_FUNCTION_TIMEOUT',
    int(os.getenv('EMAIL_FUNCTION_TIMEOUT', '15'))
)

CONDITIONAL_PATTERN = re.compile(r'\{\{#if\s+(\w+)\}\}(.*?)\{\{/if\}\}', re.DOTALL)
VARIABLE_PATTERN = re.compile(r'\{\{\s*(\w+)\s*\}\}')

EMAIL_SHELL = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="margin:0;padding:0;background-color:#f7f5f3;font-family:Georgia,'Times New Roman',serif;">
<div style="max-width:600px;margin:0 auto;padding:32px 16px;">
<div style="text-align:center;padding:32px 24px;background-color:#ffffff;border-radius:12px 12px 0 0;">
<span style="font-size:28px;letter-spacing:0.2em;color:#1a1a1a;font-weight:300;">MAISON JOVE</span>
</div>
<div style="background-color:#ffffff;padding:32px 28px;font-size:14px;line-height:1.7;color:#333333;">
{body}
</div>
</div>
</body>
</html>"""


class EmailDispatchError(Exception):
    """Raised when the send-email function is unreachable or rejects a message"""


def render_template(text, variables):
    """
    Substitute `{{name}}` placeholders.

    `{{#if name}}...{{/if}}` blocks are kept only when `name` has a
    non-blank value. Unknown placeholders are left untouched.
    """
    variables = {key.strip('{} '): '' if value is None else str(value) for key, value in (variables or {}).items()}

    def conditional(match):
        value = variables.get(match.group(1), '')
        return match.group(2) if value.strip() else ''

    def substitute(match):
        return variables.get(match.group(1), match.group(0))

    text = CONDITIONAL_PATTERN.sub(conditional, text or '')
    return VARIABLE_PATTERN.sub(substitute, text)


def build_html_email(body):
    """Wrap plain template text in the branded shell; full HTML documents pass through"""
    stripped = body.strip()
    if stripped.startswith('<!DOCTYPE') or stripped.startswith('<html'):
        return body
    return EMAIL_SHELL.replace('{body}', body.replace('\n', '<br>'))


def send_email(to, subject, html_body, from_email=None):
    """
    Send one email. Returns the function's JSON response.
    Raises EmailDispatchError on any failure.
    """
    if not EMAIL_FUNCTION_URL:
        raise EmailDispatchError("Email function URL is not configured")

    payload = {
        'to': to,
        'from': from_email or EMAIL_DEFAULT_FROM,
        'subject': subject,
        'html': html_body,
    }
    headers = {'Content-Type': 'application/json'}
    if EMAIL_FUNCTION_KEY:
        headers['x-functions-key'] = EMAIL_FUNCTION_KEY

    try:
        response = requests.post(EMAIL_FUNCTION_URL, json=payload, headers=headers, timeout=EMAIL_FUNCTION_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.error(f"Email to {to} could not reach the send-email function: {str(e)}")
        raise EmailDispatchError(f"Email service unreachable: {str(e)}") from e

    if response.status_code >= 400:
        try:
            message = response.json().get('error') or response.text
        except ValueError:
            message = response.text
        logger.error(f"Email to {to} rejected ({response.status_code}): {message}")
        raise EmailDispatchError(message or f"Email service returned {response.status_code}")

    logger.info(f"Email '{subject}' sent to {to}")
    try:
        return response.json()
    except ValueError:
        return {}
