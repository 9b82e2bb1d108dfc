import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from canteen.results import Result

logger = logging.getLogger(__name__)


WELCOME_SUBJECT = 'Welcome to Canteen Connect AI!'
CONFIRMATION_SUBJECT = 'Confirm Your Email - Canteen Connect AI'


def _send(to, subject, template, context):
    """Render accounts/<template>.txt and .html and mail both parts"""
    text = render_to_string(f'accounts/{template}.txt', context)
    html = render_to_string(f'accounts/{template}.html', context)
    try:
        send_mail(subject, text, settings.DEFAULT_FROM_EMAIL, [to], html_message=html)
    except (SMTPException, OSError) as exc:
        logger.error('Sending "%s" to %s failed: %s', subject, to, exc)
        return Result.fail(str(exc))
    return Result.ok()


def send_welcome_email(profile):
    context = {
        'full_name': profile.full_name,
        'email': profile.email,
        'role': profile.role,
        'roll_number': profile.roll_number,
        'login_url': f"{settings.FRONTEND_URL}/login",
    }
    return _send(profile.email, WELCOME_SUBJECT, 'welcome_email', context)


def send_confirmation_email(profile, confirmation_url):
    context = {
        'full_name': profile.full_name,
        'confirmation_url': confirmation_url,
    }
    return _send(profile.email, CONFIRMATION_SUBJECT, 'confirmation_email', context)
