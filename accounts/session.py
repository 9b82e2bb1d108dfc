"""
Per-request view of who is ordering.

A browser session is in one of three phases: anonymous (nothing yet),
guest (flag only, no backing identity) or authenticated (a Django user with
a Profile). ``SessionManager`` wraps the request, answers the gating
questions (``user``, ``is_guest``, ``is_admin``) and performs the phase
transitions. Every transition returns a ``Result``; nothing here retries.
"""
import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model, login, logout
from django.contrib.auth.forms import PasswordResetForm, SetPasswordForm
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ObjectDoesNotExist
from django.db import DatabaseError, IntegrityError, transaction
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from canteen.results import Result
from . import emails
from .models import Profile

logger = logging.getLogger(__name__)

ANONYMOUS = 'anonymous'
GUEST = 'guest'
AUTHENTICATED = 'authenticated'

INVALID_CREDENTIALS = 'Invalid credentials'


def guest_session_key():
    return getattr(settings, 'GUEST_SESSION_KEY', 'canteen_guest')


def cart_session_key():
    return getattr(settings, 'CART_SESSION_KEY', 'canteen_cart')


class SessionManager:
    """Session state and auth transitions for one request"""

    def __init__(self, request):
        self.request = request

    @property
    def session(self):
        return self.request.session

    @property
    def user(self):
        user = getattr(self.request, 'user', None)
        if user is not None and user.is_authenticated:
            return user
        return None

    @property
    def profile(self):
        user = self.user
        if user is None:
            return None
        try:
            return user.profile
        except ObjectDoesNotExist:
            return None

    @property
    def is_guest(self):
        return self.user is None and bool(self.session.get(guest_session_key(), False))

    @property
    def is_admin(self):
        profile = self.profile
        return profile is not None and profile.is_admin

    @property
    def phase(self):
        if self.user is not None:
            return AUTHENTICATED
        if self.is_guest:
            return GUEST
        return ANONYMOUS

    def state(self):
        # Session resolution is synchronous per request, so never "loading"
        return {
            'phase': self.phase,
            'user': self.profile,
            'is_guest': self.is_guest,
            'is_admin': self.is_admin,
            'loading': False,
        }

    def _keep_cart(self, action):
        """Run an action that flushes the session without losing the cart"""
        saved_cart = self.session.get(cart_session_key())
        action()
        if saved_cart is not None:
            self.session[cart_session_key()] = saved_cart

    def _resolve_user(self, identifier):
        identifier = (identifier or '').strip()
        if not identifier:
            return None
        User = get_user_model()
        if '@' in identifier:
            return User.objects.filter(email__iexact=identifier).first()
        profile = Profile.objects.select_related('user').filter(roll_number=identifier.upper()).first()
        return profile.user if profile else None

    def login(self, identifier, password, admin_code=None) -> Result:
        """
        Sign in with an e-mail address or roll number

        Args:
            identifier: E-mail or roll number
            password: Account password
            admin_code: Optional admin access code; when given, the signed-in
                profile must be an Admin and the code must match

        Returns:
            Result whose value is the signed-in Profile
        """
        try:
            account = self._resolve_user(identifier)
        except DatabaseError as exc:
            logger.error('Login lookup failed: %s', exc)
            return Result.fail('Could not reach the account store, please try again')

        if account is None:
            # Still goes through authenticate() so the failure is signalled
            authenticate(self.request, username=identifier, password=password)
            return Result.fail(INVALID_CREDENTIALS)

        user = authenticate(self.request, username=account.get_username(), password=password)
        if user is None:
            if not account.is_active and account.check_password(password):
                return Result.fail('Please confirm your email address before logging in')
            return Result.fail(INVALID_CREDENTIALS)

        login(self.request, user)
        self.session.pop(guest_session_key(), None)

        if admin_code:
            if admin_code != settings.ADMIN_ACCESS_CODE or not self.is_admin:
                logger.warning('Admin login rejected for user %s', user.pk)
                self._keep_cart(lambda: logout(self.request))
                return Result.fail(INVALID_CREDENTIALS)

        return Result.ok(self.profile)

    def register(self, data) -> Result:
        """
        Create an account and its profile

        Args:
            data: Validated registration fields (full_name, email, password,
                phone, role and the optional profile fields)

        Returns:
            Result with the new Profile; ``extra['confirmation_pending']`` is
            True when the account must confirm its e-mail before logging in
        """
        User = get_user_model()
        email = data['email'].strip().lower()
        confirmation_required = getattr(settings, 'ACCOUNT_EMAIL_CONFIRMATION_REQUIRED', False)

        if User.objects.filter(email__iexact=email).exists():
            return Result.fail('User already exists')

        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=email,
                    email=email,
                    password=data['password'],
                    is_active=not confirmation_required
                )
                profile = Profile.objects.create(
                    user=user,
                    full_name=data['full_name'],
                    phone=data.get('phone', ''),
                    role=data.get('role', Profile.STUDENT),
                    roll_number=data.get('roll_number'),
                    year_of_study=data.get('year_of_study'),
                    branch=data.get('branch', ''),
                    date_of_birth=data.get('date_of_birth'),
                )
        except IntegrityError:
            return Result.fail('An account with this email or roll number already exists')
        except DatabaseError as exc:
            logger.error('Registration failed for %s: %s', email, exc)
            return Result.fail('Registration failed, please try again')

        logger.info('Registered %s as %s', email, profile.role)
        emails.send_welcome_email(profile)

        if confirmation_required:
            emails.send_confirmation_email(profile, self.confirmation_url(user))
            return Result.ok(profile, confirmation_pending=True)

        login(self.request, user, backend='django.contrib.auth.backends.ModelBackend')
        self.session.pop(guest_session_key(), None)
        return Result.ok(profile, confirmation_pending=False)

    @staticmethod
    def confirmation_url(user):
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        return f"{settings.FRONTEND_URL}/confirm-email?uid={uid}&token={token}"

    @staticmethod
    def _user_from_uid(uid):
        User = get_user_model()
        try:
            pk = force_str(urlsafe_base64_decode(uid))
            return User.objects.get(pk=pk)
        except (TypeError, ValueError, OverflowError, User.DoesNotExist):
            return None

    def confirm_email(self, uid, token) -> Result:
        user = self._user_from_uid(uid)
        if user is None or not default_token_generator.check_token(user, token):
            return Result.fail('Confirmation link is invalid or has expired')
        if not user.is_active:
            user.is_active = True
            user.save(update_fields=['is_active'])
            logger.info('Email confirmed for user %s', user.pk)
        return Result.ok(user)

    def login_as_guest(self) -> Result:
        if self.user is not None:
            self._keep_cart(lambda: logout(self.request))
        self.session[guest_session_key()] = True
        logger.info('Guest session started')
        return Result.ok()

    def logout(self) -> Result:
        self._keep_cart(lambda: logout(self.request))
        self.session.pop(guest_session_key(), None)
        return Result.ok()

    def reset_password(self, email) -> Result:
        """Send a reset link; unknown addresses succeed silently like Django's own view"""
        form = PasswordResetForm({'email': email})
        if not form.is_valid():
            return Result.fail('Enter a valid email address')
        form.save(
            request=self.request,
            use_https=self.request.is_secure(),
            from_email=settings.DEFAULT_FROM_EMAIL,
            subject_template_name='accounts/password_reset_subject.txt',
            email_template_name='accounts/password_reset_email.txt',
            extra_email_context={'reset_url_base': settings.FRONTEND_URL},
        )
        return Result.ok()

    def set_new_password(self, uid, token, new_password) -> Result:
        user = self._user_from_uid(uid)
        if user is None or not default_token_generator.check_token(user, token):
            return Result.fail('Reset link is invalid or has expired')
        form = SetPasswordForm(user, {'new_password1': new_password, 'new_password2': new_password})
        if not form.is_valid():
            return Result.fail(' '.join(form.errors.get('new_password2', ['Invalid password'])))
        form.save()
        logger.info('Password reset for user %s', user.pk)
        return Result.ok()
