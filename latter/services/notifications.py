"""Challenge emails.

Mail goes out after the challenge change has been committed. Delivery is
best effort: a transport failure is logged and reported as ``False`` but
never undoes the change that triggered it.
"""
import smtplib
from email.message import EmailMessage
from enum import Enum

import requests
from flask import current_app, render_template

_SENDGRID_SEND_URL = 'https://api.sendgrid.com/v3/mail/send'
_OUTBOX_KEY = 'latter_mail_outbox'


class ChallengeNotice(Enum):
    NEW_CHALLENGE = ('New Challenge on Latter', 'mail/new_challenge.html')
    CHALLENGE_UPDATED = ('Updated Challenge on Latter', 'mail/challenge_updated.html')

    def __init__(self, subject, template_name):
        self.subject = subject
        self.template_name = template_name


class MailDeliveryError(Exception):
    pass


def _build_message(to_address, from_address, subject, html_body):
    message = EmailMessage()
    message['To'] = to_address
    message['From'] = from_address
    message['Subject'] = subject
    message.set_content('This message requires an HTML capable mail client.')
    message.add_alternative(html_body, subtype='html')
    return message


def _deliver_smtp(to_address, from_address, subject, html_body):
    config = current_app.config
    message = _build_message(to_address, from_address, subject, html_body)
    try:
        with smtplib.SMTP(
            config.get('MAIL_SMTP_HOST', 'localhost'),
            config.get('MAIL_SMTP_PORT', 25),
            timeout=config.get('MAIL_TIMEOUT_SECONDS', 10),
        ) as smtp:
            if config.get('MAIL_SMTP_USE_TLS'):
                smtp.starttls()
            username = config.get('MAIL_SMTP_USERNAME')
            if username:
                smtp.login(username, config.get('MAIL_SMTP_PASSWORD', ''))
            smtp.send_message(message)
    except (OSError, smtplib.SMTPException) as exc:
        raise MailDeliveryError(f'SMTP delivery failed: {exc}') from exc


def _deliver_sendgrid(to_address, from_address, subject, html_body):
    api_key = str(current_app.config.get('SENDGRID_API_KEY') or '').strip()
    if not api_key:
        raise MailDeliveryError('SENDGRID_API_KEY is not configured')
    try:
        response = requests.post(
            _SENDGRID_SEND_URL,
            json={
                'personalizations': [{'to': [{'email': to_address}]}],
                'from': {'email': from_address},
                'subject': subject,
                'content': [{'type': 'text/html', 'value': html_body}],
            },
            headers={'Authorization': f'Bearer {api_key}'},
            timeout=current_app.config.get('MAIL_TIMEOUT_SECONDS', 10),
        )
    except requests.RequestException as exc:
        raise MailDeliveryError(f'SendGrid request failed: {exc}') from exc
    if response.status_code >= 300:
        raise MailDeliveryError(f'SendGrid rejected message: HTTP {response.status_code}')


def _deliver_memory(to_address, from_address, subject, html_body):
    outbox(current_app).append({
        'to': to_address, 'from': from_address,
        'subject': subject, 'html_body': html_body,
    })


def _deliver_log(to_address, from_address, subject, html_body):
    current_app.logger.info('Mail to=%s from=%s subject=%r', to_address, from_address, subject)


_TRANSPORTS = {
    'smtp': _deliver_smtp,
    'sendgrid': _deliver_sendgrid,
    'memory': _deliver_memory,
    'log': _deliver_log,
}


def outbox(app):
    """Messages captured by the ``memory`` backend."""
    return app.extensions.setdefault(_OUTBOX_KEY, [])


def send(to_address, from_address, subject, template_name, context):
    """Render ``template_name`` and deliver it; returns whether it was sent."""
    backend = str(current_app.config.get('MAIL_BACKEND') or 'log').strip().lower()
    transport = _TRANSPORTS.get(backend)
    if transport is None:
        current_app.logger.warning('Unknown MAIL_BACKEND %r, mail to %s dropped', backend, to_address)
        return False

    sender = from_address or current_app.config.get('MAIL_DEFAULT_SENDER')
    try:
        html_body = render_template(template_name, **(context or {}))
        transport(to_address, sender, subject, html_body)
    except MailDeliveryError as exc:
        current_app.logger.warning('Mail to %s not delivered: %s', to_address, exc)
        return False
    except Exception:
        current_app.logger.exception('Mail to %s failed while rendering or sending', to_address)
        return False
    return True


def notify_challenge(challenge, notice):
    """Email the challenged player about ``challenge``."""
    return send(
        to_address=challenge.to_player.email,
        from_address=challenge.from_player.email,
        subject=notice.subject,
        template_name=notice.template_name,
        context={'challenge': challenge, 'notice': notice},
    )
