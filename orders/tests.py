from io import StringIO
from unittest import mock

from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Profile
from canteen.realtime import Change, UPDATE
from cart.cart import Cart
from menu.models import MenuItem
from . import services
from .models import Order
from .numbering import OrderNumberGenerator
from .state import check_transition, apply_transition


def make_user(email, role=Profile.STUDENT):
    user = get_user_model().objects.create_user(username=email, email=email, password='secret123')
    Profile.objects.create(user=user, full_name=email.split('@')[0].title(), role=role)
    return user


def make_order(**kwargs):
    defaults = {
        'order_number': f"ORD{Order.objects.count() + 1}",
        'user_id': settings.GUEST_USER_ID,
        'items': [{'id': 1, 'name': 'Samosa', 'price': 20, 'quantity': 1}],
        'total_amount': 20,
        'room_number': 'A-101',
        'contact_number': '9876543210',
    }
    defaults.update(kwargs)
    return Order.objects.create(**defaults)


class OrderNumberTests(SimpleTestCase):

    def test_uses_epoch_millisecond(self):
        generator = OrderNumberGenerator(clock=lambda: 1718000000000)

        self.assertEqual(generator.next(), 'ORD1718000000000')

    def test_same_millisecond_still_increasing(self):
        generator = OrderNumberGenerator(clock=lambda: 1718000000000)

        numbers = [generator.next_value() for _ in range(5)]

        self.assertEqual(numbers, list(range(1718000000000, 1718000000005)))

    def test_clock_stepping_back(self):
        ticks = iter([1000, 1005, 990, 1006])
        generator = OrderNumberGenerator(clock=lambda: next(ticks))

        numbers = [generator.next_value() for _ in range(4)]

        self.assertEqual(numbers, [1000, 1005, 1006, 1007])


class TransitionRuleTests(SimpleTestCase):

    def test_allowed_moves(self):
        for current, target in [('pending', 'accepted'), ('accepted', 'completed'),
                                ('pending', 'cancelled'), ('pending', 'rejected'),
                                ('accepted', 'cancelled'), ('accepted', 'rejected')]:
            with self.subTest(current=current, target=target):
                self.assertTrue(check_transition(current, target))

    def test_refused_moves(self):
        for current, target in [('pending', 'completed'), ('accepted', 'accepted'),
                                ('completed', 'cancelled'), ('rejected', 'accepted'),
                                ('cancelled', 'pending'), ('pending', 'shipped')]:
            with self.subTest(current=current, target=target):
                verdict = check_transition(current, target)
                self.assertFalse(verdict)
                self.assertTrue(verdict.reason)


class ApplyTransitionTests(TestCase):

    def test_compare_and_set(self):
        order = make_order()

        first = apply_transition(order.pk, 'accepted')
        second = apply_transition(order.pk, 'accepted')

        self.assertTrue(first)
        self.assertFalse(second)
        self.assertEqual(second.current, 'accepted')

    def test_lost_race_is_rejected(self):
        order = make_order()
        real_filter = Order.objects.filter

        def filter_then_race(*args, **kwargs):
            # Another admin rejects the order between the read and the write
            if 'status' in kwargs:
                Order.objects.all().update(status='rejected')
            return real_filter(*args, **kwargs)

        with mock.patch.object(Order.objects, 'filter', side_effect=filter_then_race):
            outcome = apply_transition(order.pk, 'accepted')

        self.assertFalse(outcome)
        order.refresh_from_db()
        self.assertEqual(order.status, 'rejected')

    def test_missing_order(self):
        outcome = apply_transition('6b1f2c1e-0000-4000-8000-000000000000', 'accepted')

        self.assertTrue(outcome.not_found)


class CreateOrderTests(TestCase):

    def setUp(self):
        self.store = {}
        self.cart = Cart(self.store)
        self.dosa = MenuItem.objects.create(name="Masala Dosa", category="Breakfast", price=45)
        self.chai = MenuItem.objects.create(name="Masala Chai", category="Beverages", price=15)

    def place(self, **kwargs):
        params = {'user': None, 'room_number': 'B-204', 'contact_number': '9876543210', 'payment_method': 'cash'}
        params.update(kwargs)
        return services.create_order(self.cart, **params)

    def test_guest_cash_order(self):
        self.cart.add(self.dosa)
        self.cart.add(self.dosa)
        self.cart.add(self.chai)

        result = self.place()

        self.assertTrue(result)
        order = result.value
        self.assertEqual(order.user_id, settings.GUEST_USER_ID)
        self.assertTrue(order.is_guest_order)
        self.assertEqual(order.total_amount, 105)
        self.assertEqual(order.status, 'pending')
        self.assertEqual(order.payment_status, 'pending')
        self.assertEqual(order.payment_method, 'cash')
        self.assertTrue(order.order_number.startswith('ORD'))
        self.assertEqual([(i['name'], i['quantity']) for i in order.items],
                         [("Masala Dosa", 2), ("Masala Chai", 1)])
        self.assertFalse(self.cart)

    def test_snapshot_survives_menu_changes(self):
        self.cart.add(self.dosa)
        order = self.place().value

        self.dosa.price = 60
        self.dosa.save()
        self.dosa.delete()

        order.refresh_from_db()
        self.assertEqual(order.items[0]['price'], 45)

    def test_registered_user(self):
        user = make_user('student@college.edu')
        self.cart.add(self.chai)

        order = self.place(user=user, payment_method='card').value

        self.assertEqual(order.user_id, str(user.pk))
        self.assertEqual(order.customer_name, 'Student')
        self.assertEqual(order.payment_method, 'card')

    def test_unknown_payment_method_becomes_upi(self):
        for method in ['UPI', 'bitcoin', '', None]:
            with self.subTest(method=method):
                self.cart.add(self.chai)
                order = self.place(payment_method=method).value
                self.assertEqual(order.payment_method, 'upi')

    def test_empty_cart_rejected(self):
        result = self.place()

        self.assertFalse(result)
        self.assertEqual(Order.objects.count(), 0)

    def test_failed_insert_keeps_cart(self):
        from django.db import DatabaseError
        self.cart.add(self.dosa)

        with mock.patch.object(Order.objects, 'create', side_effect=DatabaseError('db down')):
            result = self.place()

        self.assertFalse(result)
        self.assertEqual(self.cart.total_items(), 1)

    def test_order_numbers_distinct(self):
        numbers = set()
        with mock.patch('orders.numbering.time.time_ns', return_value=1718000000000 * 1_000_000):
            for _ in range(3):
                self.cart.add(self.chai)
                numbers.add(self.place().value.order_number)

        self.assertEqual(len(numbers), 3)


class UpdateOrderStatusTests(TestCase):

    def test_returns_fresh_order(self):
        order = make_order()

        result = services.update_order_status(order.pk, 'accepted')

        self.assertTrue(result)
        self.assertEqual(result.value.status, 'accepted')

    def test_order_deleted_after_write(self):
        order = make_order()

        def accept_then_delete(order_id, target):
            outcome = apply_transition(order_id, target)
            Order.objects.filter(pk=order_id).delete()
            return outcome

        with mock.patch('orders.services.apply_transition', side_effect=accept_then_delete):
            result = services.update_order_status(order.pk, 'accepted')

        self.assertFalse(result)
        self.assertTrue(result.extra.get('not_found'))
        self.assertEqual(result.error, 'Order not found')

    def test_illegal_move_is_conflict(self):
        order = make_order(status='completed')

        result = services.update_order_status(order.pk, 'accepted')

        self.assertTrue(result.extra.get('conflict'))
        self.assertEqual(result.extra.get('current'), 'completed')


class OrderStatsTests(TestCase):

    def test_counts_and_revenue(self):
        make_order(status='completed', total_amount=100)
        make_order(status='completed', total_amount=50)
        make_order(status='pending')
        make_order(status='cancelled', total_amount=999)

        stats = services.order_stats().value

        self.assertEqual(stats['total'], 4)
        self.assertEqual(stats['by_status']['completed'], 2)
        self.assertEqual(stats['by_status']['accepted'], 0)
        self.assertEqual(stats['revenue'], 150)
        self.assertEqual(stats['today'], 4)

    def test_accept_all_pending(self):
        first = make_order()
        second = make_order()
        done = make_order(status='completed')

        accepted = services.accept_all_pending().value

        self.assertCountEqual(accepted, [first.pk, second.pk])
        done.refresh_from_db()
        self.assertEqual(done.status, 'completed')


class SubscriptionTests(TestCase):

    def test_full_refetch_on_every_change(self):
        make_order()
        feed = mock.Mock()
        received = []

        subscription = services.subscribe_to_orders(received.append, feed=feed)

        table, handler = feed.subscribe.call_args[0]
        self.assertEqual(table, 'orders')
        self.assertIs(subscription, feed.subscribe.return_value)

        make_order()
        handler(Change('orders', UPDATE, 'x'))
        self.assertEqual(len(received), 1)
        self.assertEqual(len(received[0]), 2)


class WatchOrdersCommandTests(TestCase):

    def test_prints_board_and_closes_on_interrupt(self):
        from django.core.management import call_command
        make_order(customer_name='Priya')
        subscription = mock.Mock()
        out = StringIO()

        with mock.patch('orders.management.commands.watch_orders.subscribe_to_orders', return_value=subscription), \
                mock.patch('orders.management.commands.watch_orders.time.sleep', side_effect=KeyboardInterrupt):
            call_command('watch_orders', stdout=out)

        self.assertIn('Priya', out.getvalue())
        subscription.close.assert_called_once_with()


class OrderAPITests(APITestCase):
    """Checkout and order history"""

    def setUp(self):
        self.dosa = MenuItem.objects.create(name="Masala Dosa", category="Breakfast", price=45)
        self.chai = MenuItem.objects.create(name="Masala Chai", category="Beverages", price=15)
        self.student = make_user('student@college.edu')

    def fill_cart(self):
        for item in (self.dosa, self.dosa, self.chai):
            self.client.post(reverse('cart_items'), {'menu_item_id': item.id}, format='json')

    def checkout(self, **extra):
        payload = {'room_number': 'B-204', 'contact_number': '98765 43210', 'payment_method': 'cash'}
        payload.update(extra)
        return self.client.post(reverse('place_order'), payload, format='json')

    def test_guest_checkout_empties_cart(self):
        self.client.post(reverse('guest'))
        self.fill_cart()

        response = self.checkout(customer_name='Priya')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], 105)
        self.assertEqual(response.data['user_id'], settings.GUEST_USER_ID)
        self.assertEqual(response.data['contact_number'], '9876543210')
        self.assertEqual(response.data['next_statuses'], ['accepted', 'cancelled', 'rejected'])
        self.assertEqual(self.client.get(reverse('cart')).data['total_items'], 0)

    def test_anonymous_cannot_checkout(self):
        response = self.checkout()

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_empty_cart(self):
        self.client.post(reverse('guest'))

        response = self.checkout(customer_name='Priya')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Your cart is empty')

    def test_bad_contact_number(self):
        self.client.post(reverse('guest'))
        self.fill_cart()

        response = self.checkout(contact_number='123', customer_name='Priya')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contact_number', response.data)
        self.assertEqual(self.client.get(reverse('cart')).data['total_items'], 3)

    def test_guest_with_email_contact(self):
        self.client.post(reverse('guest'))
        self.fill_cart()

        response = self.checkout(contact_number=' Guest@College.edu ', customer_name='Priya')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['contact_number'], 'guest@college.edu')
        self.assertEqual(response.data['customer_name'], 'Priya')

    def test_malformed_email_contact(self):
        self.client.post(reverse('guest'))
        self.fill_cart()

        response = self.checkout(contact_number='guest@', customer_name='Priya')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contact_number', response.data)

    def test_guest_must_give_name(self):
        self.client.post(reverse('guest'))
        self.fill_cart()

        for name in (None, '   '):
            with self.subTest(name=name):
                extra = {} if name is None else {'customer_name': name}
                response = self.checkout(**extra)
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn('customer_name', response.data)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(self.client.get(reverse('cart')).data['total_items'], 3)

    def test_registered_user_needs_no_name(self):
        self.client.force_login(self.student)
        self.fill_cart()

        response = self.checkout()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_name'], 'Student')

    def test_my_orders_filtered(self):
        self.client.force_login(self.student)
        self.fill_cart()
        self.checkout()
        make_order(user_id=str(self.student.pk), status='completed', order_number='ORD1')
        make_order(order_number='ORD2')

        everything = self.client.get(reverse('my_orders'))
        completed = self.client.get(reverse('my_orders'), {'status': 'completed'})

        self.assertEqual(len(everything.data), 2)
        self.assertEqual([o['order_number'] for o in completed.data], ['ORD1'])

    def test_guests_have_no_history(self):
        self.client.post(reverse('guest'))

        response = self.client.get(reverse('my_orders'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_own_order_only(self):
        mine = make_order(user_id=str(self.student.pk), order_number='ORD1')
        theirs = make_order(user_id='999', order_number='ORD2')
        self.client.force_login(self.student)

        deleted = self.client.delete(reverse('order_detail', args=[mine.pk]))
        refused = self.client.delete(reverse('order_detail', args=[theirs.pk]))

        self.assertEqual(deleted.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(refused.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Order.objects.filter(pk=theirs.pk).exists())


class AdminOrderAPITests(APITestCase):
    """Order board behind the admin role"""

    def setUp(self):
        self.admin = make_user('admin@college.edu', role=Profile.ADMIN)
        self.order = make_order()

    def set_status(self, value, order=None):
        order = order or self.order
        return self.client.post(reverse('admin_order_status', args=[order.pk]), {'status': value}, format='json')

    def test_guest_turned_away(self):
        self.client.post(reverse('guest'))

        self.assertEqual(self.client.get(reverse('admin_orders')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.set_status('accepted').status_code, status.HTTP_403_FORBIDDEN)

    def test_accept_twice_conflicts(self):
        self.client.force_login(self.admin)

        first = self.set_status('accepted')
        second = self.set_status('accepted')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['status'], 'accepted')
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)

    def test_full_lifecycle(self):
        self.client.force_login(self.admin)

        self.assertEqual(self.set_status('accepted').status_code, status.HTTP_200_OK)
        self.assertEqual(self.set_status('completed').status_code, status.HTTP_200_OK)
        self.assertEqual(self.set_status('cancelled').status_code, status.HTTP_409_CONFLICT)

    def test_skipping_accepted_conflicts(self):
        self.client.force_login(self.admin)

        response = self.set_status('completed')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_no_session_user_turned_away(self):
        self.client.credentials(HTTP_X_API_KEY='demo')

        response = self.set_status('accepted')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, 'pending')

    def test_unknown_order(self):
        self.client.force_login(self.admin)

        response = self.client.post(
            reverse('admin_order_status', args=['6b1f2c1e-0000-4000-8000-000000000000']),
            {'status': 'accepted'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_accept_pending_and_stats(self):
        make_order(status='completed', total_amount=120)
        self.client.force_login(self.admin)

        listing = self.client.get(reverse('admin_orders'))
        accepted = self.client.post(reverse('admin_accept_pending'))
        stats = self.client.get(reverse('admin_order_stats'))

        self.assertEqual(len(listing.data), 2)
        self.assertEqual(accepted.data['accepted'], [str(self.order.pk)])
        self.assertEqual(stats.data['by_status']['accepted'], 1)
        self.assertEqual(stats.data['revenue'], 120)
