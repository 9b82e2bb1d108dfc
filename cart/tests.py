from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from menu.models import MenuItem
from .cart import Cart

DOSA = {'id': 1, 'name': 'Masala Dosa', 'category': 'Breakfast', 'price': 45, 'type': 'Veg'}
CHAI = {'id': 4, 'name': 'Masala Chai', 'category': 'Beverages', 'price': 15, 'type': 'Veg'}


class FakeSession(dict):
    modified = False


class CartTests(SimpleTestCase):
    """Cart arithmetic and persistence against a plain mapping"""

    def setUp(self):
        self.store = FakeSession()
        self.cart = Cart(self.store)

    def test_totals(self):
        self.cart.add(DOSA)
        self.cart.add(DOSA)
        self.cart.add(CHAI)

        self.assertEqual(self.cart.total_items(), 3)
        self.assertEqual(self.cart.total_price(), 105)
        self.assertEqual(len(self.cart), 2)

    def test_add_existing_item_bumps_quantity(self):
        self.cart.add(DOSA)
        self.cart.add(dict(DOSA, quantity=9))

        self.assertEqual(self.cart.item_quantity(1), 2)

    def test_remove_decrements_then_drops(self):
        self.cart.add(DOSA)
        self.cart.add(DOSA)

        self.cart.remove(1)
        self.assertEqual(self.cart.item_quantity(1), 1)

        self.cart.remove(1)
        self.assertNotIn(1, self.cart)

    def test_remove_unknown_item_is_noop(self):
        self.cart.add(CHAI)

        self.cart.remove(99)

        self.assertEqual(self.cart.total_items(), 1)

    def test_update_quantity(self):
        self.cart.add(DOSA)
        self.cart.add(CHAI)

        self.cart.update_quantity(1, 4)
        self.assertEqual(self.cart.item_quantity(1), 4)

        self.cart.update_quantity(4, 0)
        self.assertNotIn(4, self.cart)

        self.cart.update_quantity(99, 3)
        self.assertNotIn(99, self.cart)

    def test_clear(self):
        self.cart.add(DOSA)

        self.cart.clear()

        self.assertFalse(self.cart)
        self.assertEqual(self.store[self.cart.key], [])

    def test_every_mutation_is_persisted(self):
        self.cart.add(DOSA)
        self.cart.add(CHAI)
        self.cart.update_quantity(1, 2)

        reloaded = Cart(self.store)

        self.assertTrue(self.store.modified)
        self.assertEqual(reloaded.items, self.cart.items)
        self.assertEqual(reloaded.total_price(), 105)

    def test_snapshot_is_detached(self):
        self.cart.add(DOSA)

        snapshot = self.cart.snapshot()
        snapshot[0]['quantity'] = 50

        self.assertEqual(self.cart.item_quantity(1), 1)

    def test_malformed_store_starts_empty(self):
        for raw in ['not a list', [{'id': 1, 'price': 45}], [dict(DOSA, quantity=0)], [dict(DOSA, quantity='x')]]:
            with self.subTest(raw=raw):
                with self.assertLogs('cart.cart', level='WARNING'):
                    cart = Cart(FakeSession({'canteen_cart': raw}))
                self.assertEqual(len(cart), 0)


class CartAPITests(APITestCase):
    """Cart endpoints backed by the session"""

    def setUp(self):
        self.dosa = MenuItem.objects.create(name="Masala Dosa", category="Breakfast", price=45)
        self.chai = MenuItem.objects.create(name="Masala Chai", category="Beverages", price=15)
        self.sold_out = MenuItem.objects.create(name="Gulab Jamun", category="Desserts", price=30, is_available=False)
        self.client.post(reverse('guest'))

    def add(self, item):
        return self.client.post(reverse('cart_items'), {'menu_item_id': item.id}, format='json')

    def test_requires_session_identity(self):
        self.client.post(reverse('logout'))

        response = self.client.get(reverse('cart'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_add_items_and_read_totals(self):
        self.add(self.dosa)
        self.add(self.dosa)
        response = self.add(self.chai)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 3)
        self.assertEqual(response.data['total_price'], 105)

        # A fresh request rebuilds the same cart from the session
        reloaded = self.client.get(reverse('cart'))
        self.assertEqual(reloaded.data, response.data)

    def test_unknown_or_unavailable_item_rejected(self):
        missing = self.client.post(reverse('cart_items'), {'menu_item_id': 9999}, format='json')
        unavailable = self.add(self.sold_out)

        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(unavailable.status_code, status.HTTP_400_BAD_REQUEST)

    def test_set_quantity_and_remove(self):
        self.add(self.dosa)

        updated = self.client.put(reverse('cart_item', args=[self.dosa.id]), {'quantity': 3}, format='json')
        self.assertEqual(updated.data['total_price'], 135)

        removed = self.client.delete(reverse('cart_item', args=[self.dosa.id]))
        self.assertEqual(removed.data['total_items'], 2)

        dropped = self.client.put(reverse('cart_item', args=[self.dosa.id]), {'quantity': 0}, format='json')
        self.assertEqual(dropped.data['items'], [])

    def test_set_quantity_for_unknown_menu_item(self):
        response = self.client.put(reverse('cart_item', args=[9999]), {'quantity': 2}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_clear(self):
        self.add(self.dosa)

        response = self.client.delete(reverse('cart'))

        self.assertEqual(response.data['total_items'], 0)


class CartSessionTransitionTests(TestCase):

    def test_cart_survives_logout(self):
        item = MenuItem.objects.create(name="Samosa", category="Snacks", price=20)
        self.client.post(reverse('guest'))
        self.client.post(reverse('cart_items'), {'menu_item_id': item.id}, content_type='application/json')

        self.client.post(reverse('logout'))
        self.client.post(reverse('guest'))
        response = self.client.get(reverse('cart'))

        self.assertEqual(response.json()['total_price'], 20)
