import re
import shutil
import tempfile
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from canteen.results import Result
from canteen.validators import normalize_contact, normalize_phone
from . import emails
from . import services
from .models import Profile

User = get_user_model()


def make_user(email, role=Profile.STUDENT, password='secret123', roll_number=None, **kwargs):
    user = User.objects.create_user(username=email, email=email, password=password, **kwargs)
    Profile.objects.create(user=user, full_name=email.split('@')[0].title(), role=role, roll_number=roll_number)
    return user


REGISTRATION = {
    'full_name': 'Arjun Kumar',
    'email': 'arjun@college.edu',
    'phone': '98765 43210',
    'password': 'secret123',
    'role': 'Student',
    'roll_number': '21cs042',
    'year_of_study': 3,
    'branch': 'CSE',
}


class ProfileModelTests(TestCase):

    def test_roll_number_normalized(self):
        user = make_user('a@college.edu', roll_number=' 21cs001 ')
        blank = make_user('b@college.edu', roll_number='')

        self.assertEqual(user.profile.roll_number, '21CS001')
        self.assertIsNone(blank.profile.roll_number)

    def test_is_admin_only_for_admin_role(self):
        for role, expected in [(Profile.STUDENT, False), (Profile.TEACHER, False), (Profile.ADMIN, True)]:
            with self.subTest(role=role):
                self.assertEqual(Profile(role=role).is_admin, expected)


class PhoneValidationTests(TestCase):

    def test_normalizes_to_ten_digits(self):
        self.assertEqual(normalize_phone('98765-43210'), '9876543210')
        self.assertEqual(normalize_phone('(987) 654-3210'), '9876543210')

    def test_rejects_wrong_length(self):
        from rest_framework.exceptions import ValidationError
        for value in ['12345', '98765432101', '', None]:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    normalize_phone(value)

    def test_contact_accepts_email_or_phone(self):
        self.assertEqual(normalize_contact(' Visitor@Gmail.com '), 'visitor@gmail.com')
        self.assertEqual(normalize_contact('98765 43210'), '9876543210')

    def test_contact_rejects_malformed(self):
        from rest_framework.exceptions import ValidationError
        for value in ['visitor@', 'a@b@c.com', '12345', '']:
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    normalize_contact(value)


class EmailTemplateTests(TestCase):

    def test_welcome_rendered_from_templates(self):
        user = make_user('arjun@college.edu')
        user.profile.full_name = 'Arjun <Kumar>'
        user.profile.save()

        with override_settings(FRONTEND_URL='https://canteen.example'):
            result = emails.send_welcome_email(user.profile)

        self.assertTrue(result)
        message = mail.outbox[0]
        self.assertIn('Hi Arjun <Kumar>,', message.body)
        self.assertIn('Roll Number: N/A', message.body)
        self.assertIn('Login URL: https://canteen.example/login', message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, 'text/html')
        self.assertIn('Arjun &lt;Kumar&gt;', html)

    def test_confirmation_link_unescaped_in_text(self):
        user = make_user('arjun@college.edu')
        url = 'https://canteen.example/confirm-email?uid=MQ&token=abc-123'

        emails.send_confirmation_email(user.profile, url)

        message = mail.outbox[0]
        self.assertEqual(message.subject, 'Confirm Your Email - Canteen Connect AI')
        self.assertIn(url, message.body)
        self.assertIn('uid=MQ&amp;token=abc-123', message.alternatives[0][0])

    def test_smtp_failure_is_reported(self):
        user = make_user('arjun@college.edu')

        with mock.patch('accounts.emails.send_mail', side_effect=OSError('connection refused')), \
                self.assertLogs('accounts.emails', level='ERROR'):
            result = emails.send_welcome_email(user.profile)

        self.assertFalse(result)


class SessionAPITests(APITestCase):
    """Login, registration and guest transitions"""

    def setUp(self):
        self.student = make_user('student@college.edu', roll_number='21CS001')
        self.admin = make_user('admin@college.edu', role=Profile.ADMIN, password='admin123')

    def state(self):
        return self.client.get(reverse('session_state')).data

    def test_starts_anonymous(self):
        state = self.state()

        self.assertEqual(state['phase'], 'anonymous')
        self.assertIsNone(state['user'])
        self.assertFalse(state['is_guest'])
        self.assertFalse(state['loading'])

    def test_login_with_email(self):
        response = self.client.post(reverse('login'), {
            'identifier': 'student@college.edu', 'password': 'secret123'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['phase'], 'authenticated')
        self.assertEqual(response.data['user']['email'], 'student@college.edu')
        self.assertFalse(response.data['is_admin'])

    def test_login_with_roll_number_any_case(self):
        response = self.client.post(reverse('login'), {'identifier': '21cs001', 'password': 'secret123'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['roll_number'], '21CS001')

    def test_wrong_password(self):
        response = self.client.post(reverse('login'), {
            'identifier': 'student@college.edu', 'password': 'nope'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')
        self.assertEqual(self.state()['phase'], 'anonymous')

    def test_admin_login_needs_code_and_role(self):
        wrong_code = self.client.post(reverse('login'), {
            'identifier': 'admin@college.edu', 'password': 'admin123', 'admin_code': 'WRONG'
        }, format='json')
        self.assertEqual(wrong_code.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(self.state()['phase'], 'anonymous')

        not_admin = self.client.post(reverse('login'), {
            'identifier': 'student@college.edu', 'password': 'secret123', 'admin_code': 'ADMIN123'
        }, format='json')
        self.assertEqual(not_admin.status_code, status.HTTP_401_UNAUTHORIZED)

        ok = self.client.post(reverse('login'), {
            'identifier': 'admin@college.edu', 'password': 'admin123', 'admin_code': 'ADMIN123'
        }, format='json')
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.assertTrue(ok.data['is_admin'])

    def test_guest_then_login_clears_guest_flag(self):
        guest = self.client.post(reverse('guest'))
        self.assertEqual(guest.data['phase'], 'guest')
        self.assertTrue(guest.data['is_guest'])

        self.client.post(reverse('login'), {'identifier': 'student@college.edu', 'password': 'secret123'}, format='json')

        state = self.state()
        self.assertEqual(state['phase'], 'authenticated')
        self.assertFalse(state['is_guest'])

    def test_logout(self):
        self.client.force_login(self.student)

        response = self.client.post(reverse('logout'))

        self.assertEqual(response.data['phase'], 'anonymous')

    def test_register_logs_in_and_sends_welcome(self):
        response = self.client.post(reverse('register'), REGISTRATION, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['confirmation_pending'])
        self.assertEqual(response.data['phase'], 'authenticated')
        profile = Profile.objects.get(user__email='arjun@college.edu')
        self.assertEqual(profile.phone, '9876543210')
        self.assertEqual(profile.roll_number, '21CS042')
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Welcome to Canteen Connect AI!')

    def test_register_duplicate_email(self):
        self.client.post(reverse('register'), REGISTRATION, format='json')
        self.client.post(reverse('logout'))

        response = self.client.post(reverse('register'), dict(REGISTRATION, roll_number=''), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'User already exists')

    def test_register_cannot_pick_admin(self):
        response = self.client.post(reverse('register'), dict(REGISTRATION, role='Admin'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('role', response.data)

    def test_register_bad_phone(self):
        response = self.client.post(reverse('register'), dict(REGISTRATION, phone='12345'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    @override_settings(ACCOUNT_EMAIL_CONFIRMATION_REQUIRED=True)
    def test_register_with_confirmation(self):
        response = self.client.post(reverse('register'), REGISTRATION, format='json')

        self.assertTrue(response.data['confirmation_pending'])
        self.assertEqual(response.data['phase'], 'anonymous')
        self.assertEqual(len(mail.outbox), 2)

        blocked = self.client.post(reverse('login'), {
            'identifier': 'arjun@college.edu', 'password': 'secret123'
        }, format='json')
        self.assertEqual(blocked.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('confirm', blocked.data['error'])

        uid, token = re.search(r'uid=([^&\s]+)&token=([^\s"<]+)', mail.outbox[1].body).groups()
        confirmed = self.client.post(reverse('confirm_email'), {'uid': uid, 'token': token}, format='json')
        self.assertEqual(confirmed.status_code, status.HTTP_200_OK)

        login = self.client.post(reverse('login'), {
            'identifier': 'arjun@college.edu', 'password': 'secret123'
        }, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)

    def test_password_reset_round(self):
        response = self.client.post(reverse('reset_password'), {'email': 'student@college.edu'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)
        uid, token = re.search(r'uid=([^&\s]+)&token=(\S+)', mail.outbox[0].body).groups()

        done = self.client.post(reverse('set_password'), {
            'uid': uid, 'token': token, 'new_password': 'fresh-pass-42'
        }, format='json')
        self.assertEqual(done.status_code, status.HTTP_200_OK)
        self.student.refresh_from_db()
        self.assertTrue(self.student.check_password('fresh-pass-42'))

    def test_password_reset_unknown_email_is_silent(self):
        response = self.client.post(reverse('reset_password'), {'email': 'ghost@college.edu'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 0)


class ProfileAPITests(APITestCase):

    def setUp(self):
        self.user = make_user('student@college.edu')
        self.client.force_login(self.user)

    def test_guest_has_no_profile(self):
        self.client.post(reverse('guest'))

        response = self.client.get(reverse('profile'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_fields(self):
        response = self.client.patch(reverse('profile'), {'branch': 'ECE', 'phone': '9876543210'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['branch'], 'ECE')
        self.assertEqual(response.data['email_confirmed'], True)

    def test_photo_upload(self):
        media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, media_root, ignore_errors=True)
        photo = SimpleUploadedFile('me.jpg', b'fake-jpeg', content_type='image/jpeg')

        with override_settings(MEDIA_ROOT=media_root):
            response = self.client.patch(reverse('profile'), {'photo': photo, 'branch': 'IT'}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['profile_photo_url'].startswith('/media/profile-photos/'))

    def test_failed_photo_upload_changes_nothing(self):
        photo = SimpleUploadedFile('me.jpg', b'fake-jpeg', content_type='image/jpeg')

        with mock.patch('accounts.views.upload_photo', return_value=Result.fail('Photo upload failed: disk full')):
            response = self.client.patch(reverse('profile'), {'photo': photo, 'branch': 'IT'}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.user.profile.refresh_from_db()
        self.assertEqual(self.user.profile.branch, '')


class AdminUserAPITests(APITestCase):
    """User management behind the admin role"""

    def setUp(self):
        self.admin = make_user('admin@college.edu', role=Profile.ADMIN)
        self.student = make_user('student@college.edu')
        self.teacher = make_user('teacher@college.edu', role=Profile.TEACHER)

    def test_guests_and_students_are_turned_away(self):
        self.client.post(reverse('guest'))
        self.assertEqual(self.client.get(reverse('admin_users')).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_login(self.student)
        self.assertEqual(self.client.get(reverse('admin_users')).status_code, status.HTTP_403_FORBIDDEN)

    def test_list_and_stats(self):
        self.client.force_login(self.admin)

        users = self.client.get(reverse('admin_users'))
        stats = self.client.get(reverse('admin_user_stats'))

        self.assertEqual(len(users.data), 3)
        self.assertEqual(stats.data, {'total': 3, 'students': 1, 'teachers': 1, 'admins': 1, 'new_this_month': 3})

    def test_change_role(self):
        self.client.force_login(self.admin)

        response = self.client.patch(reverse('admin_user_role', args=[self.student.pk]), {'role': 'Teacher'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'Teacher')

    def test_delete_user(self):
        self.client.force_login(self.admin)

        response = self.client.delete(reverse('admin_user', args=[self.student.pk]))
        missing = self.client.get(reverse('admin_user', args=[self.student.pk]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.student.pk).exists())
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_cannot_delete_self(self):
        self.client.force_login(self.admin)

        response = self.client.delete(reverse('admin_user', args=[self.admin.pk]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_no_session_user_is_turned_away(self):
        # Headers alone never stand in for an Admin profile
        self.client.credentials(HTTP_X_API_KEY='demo')

        state = self.client.get(reverse('session_state')).data
        response = self.client.get(reverse('admin_users'))

        self.assertIsNone(state['user'])
        self.assertFalse(state['is_admin'])
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_turned_away(self):
        for name in ('admin_users', 'admin_user_stats'):
            with self.subTest(name=name):
                self.assertEqual(self.client.get(reverse(name)).status_code, status.HTTP_403_FORBIDDEN)


class AccountServiceTests(TestCase):

    def test_unknown_role_rejected(self):
        user = make_user('student@college.edu')

        result = services.update_user_role(user.pk, 'Principal')

        self.assertFalse(result)
        self.assertEqual(user.profile.role, Profile.STUDENT)

    def test_missing_user(self):
        result = services.get_user(12345)

        self.assertFalse(result)
        self.assertTrue(result.extra['not_found'])
