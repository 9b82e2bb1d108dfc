import shutil
import tempfile
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Profile
from .models import MenuItem
from .management.commands.seed_menu import DEFAULT_MENU


def make_user(email, role=Profile.STUDENT, password='secret123'):
    user = get_user_model().objects.create_user(username=email, email=email, password=password)
    Profile.objects.create(user=user, full_name=email.split('@')[0].title(), role=role)
    return user


class MenuItemModelTests(TestCase):
    """Catalog item behaviour"""

    def test_defaults(self):
        item = MenuItem.objects.create(name="Samosa", category="Snacks", price=20)

        self.assertEqual(item.type, 'Veg')
        self.assertEqual(item.image, '/placeholder.svg')
        self.assertTrue(item.is_available)
        self.assertFalse(item.is_special)

    def test_as_cart_entry_carries_catalog_fields(self):
        item = MenuItem.objects.create(
            name="Masala Dosa", category="Breakfast", price=45, rating=4.8,
            prep_time="15 min", is_special=True
        )

        entry = item.as_cart_entry()

        self.assertEqual(entry['id'], item.id)
        self.assertEqual(entry['name'], "Masala Dosa")
        self.assertEqual(entry['price'], 45)
        self.assertTrue(entry['is_special'])
        self.assertNotIn('quantity', entry)


class SeedMenuCommandTests(TestCase):

    def test_seeds_default_menu_once(self):
        call_command('seed_menu', stdout=StringIO())
        call_command('seed_menu', stdout=StringIO())

        self.assertEqual(MenuItem.objects.count(), len(DEFAULT_MENU))
        self.assertEqual(MenuItem.objects.get(name="Masala Chai").price, 15)
        self.assertEqual(MenuItem.objects.get(name="Chicken Biryani").type, 'Non-Veg')

    def test_clear_removes_extra_items(self):
        MenuItem.objects.create(name="Old Special", category="Snacks", price=10)

        call_command('seed_menu', '--clear', stdout=StringIO())

        self.assertFalse(MenuItem.objects.filter(name="Old Special").exists())
        self.assertEqual(MenuItem.objects.count(), len(DEFAULT_MENU))


class MenuAPITests(APITestCase):
    """Browsing and maintaining the catalog over HTTP"""

    def setUp(self):
        self.dosa = MenuItem.objects.create(name="Masala Dosa", category="Breakfast", price=45, is_special=True)
        self.biryani = MenuItem.objects.create(name="Chicken Biryani", category="Main Course", price=120, type='Non-Veg')
        self.chai = MenuItem.objects.create(name="Masala Chai", category="Beverages", price=15)
        self.list_url = reverse('menu_list')

    def test_anonymous_cannot_browse(self):
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_guest_lists_menu_in_catalog_order(self):
        self.client.post(reverse('guest'))

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item['name'] for item in response.data],
                         ["Masala Dosa", "Chicken Biryani", "Masala Chai"])

    def test_filters(self):
        self.client.post(reverse('guest'))

        by_category = self.client.get(self.list_url, {'category': 'Beverages'})
        by_type = self.client.get(self.list_url, {'type': 'Non-Veg'})
        specials = self.client.get(self.list_url, {'special': 'true'})
        everything = self.client.get(self.list_url, {'category': 'All'})

        self.assertEqual([item['id'] for item in by_category.data], [self.chai.id])
        self.assertEqual([item['id'] for item in by_type.data], [self.biryani.id])
        self.assertEqual([item['id'] for item in specials.data], [self.dosa.id])
        self.assertEqual(len(everything.data), 3)

    def test_get_single_item(self):
        self.client.post(reverse('guest'))

        response = self.client.get(reverse('menu_item', args=[self.chai.id]))
        missing = self.client.get(reverse('menu_item', args=[9999]))

        self.assertEqual(response.data['price'], 15)
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_students_cannot_add_items(self):
        self.client.force_login(make_user('student@college.edu'))

        response = self.client.post(self.list_url, {'name': 'Vada', 'category': 'Snacks', 'price': 20}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_adds_and_removes_items(self):
        self.client.force_login(make_user('admin@college.edu', role=Profile.ADMIN))

        created = self.client.post(
            self.list_url,
            {'name': 'Vada Pav', 'category': 'Snacks', 'price': 25, 'rating': 4.2},
            format='json'
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)

        deleted = self.client.delete(reverse('menu_item', args=[created.data['id']]))
        self.assertEqual(deleted.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(MenuItem.objects.filter(name='Vada Pav').exists())

    def test_rating_out_of_range_rejected(self):
        self.client.force_login(make_user('admin@college.edu', role=Profile.ADMIN))

        response = self.client.post(
            self.list_url,
            {'name': 'Vada', 'category': 'Snacks', 'price': 20, 'rating': 7},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('rating', response.data)

    def test_no_session_user_cannot_delete(self):
        self.client.credentials(HTTP_X_API_KEY='demo')

        response = self.client.delete(reverse('menu_item', args=[self.dosa.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(MenuItem.objects.filter(id=self.dosa.id).exists())


class MenuPhotoTests(APITestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
        self.item = MenuItem.objects.create(name="Samosa", category="Snacks", price=20)

    def test_upload_points_item_at_photo(self):
        self.client.force_login(make_user('admin@college.edu', role=Profile.ADMIN))
        photo = SimpleUploadedFile('samosa.png', b'\x89PNG fake', content_type='image/png')

        with override_settings(MEDIA_ROOT=self.media_root):
            response = self.client.post(reverse('menu_photo', args=[self.item.id]), {'photo': photo}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.item.refresh_from_db()
        self.assertTrue(self.item.image.startswith('/media/menu-photos/'))
        self.assertTrue(self.item.image.endswith('.png'))
