import logging

from django.contrib.auth.signals import user_logged_in, user_logged_out, user_login_failed
from django.dispatch import receiver

from canteen.realtime import publish_change

logger = logging.getLogger(__name__)


@receiver(user_logged_in)
def on_login(sender, request, user, **kwargs):
    logger.info('User %s logged in', user.pk)
    publish_change('auth', 'SIGNED_IN', user.pk)


@receiver(user_logged_out)
def on_logout(sender, request, user, **kwargs):
    if user is None:
        return
    logger.info('User %s logged out', user.pk)
    publish_change('auth', 'SIGNED_OUT', user.pk)


@receiver(user_login_failed)
def on_login_failed(sender, credentials, request=None, **kwargs):
    # credentials are already scrubbed of the password by Django
    logger.warning('Failed login for %s', credentials.get('username', '?'))
