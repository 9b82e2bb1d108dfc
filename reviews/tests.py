from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase
from rest_framework import status

from accounts.models import Profile
from menu.models import MenuItem
from . import services
from .models import Review


def make_user(email, role=Profile.STUDENT, full_name='Priya Sharma'):
    user = get_user_model().objects.create_user(username=email, email=email, password='secret123')
    Profile.objects.create(user=user, full_name=full_name, role=role)
    return user


class ReviewServiceTests(TestCase):

    def setUp(self):
        self.user = make_user('priya@college.edu', role=Profile.TEACHER)

    def test_submit_snapshots_name_and_role(self):
        review = services.submit_review(self.user, 'Masala Dosa', 5, '  Crispy!  ').value

        self.user.profile.full_name = 'Dr. Priya Sharma'
        self.user.profile.save()
        review.refresh_from_db()

        self.assertEqual(review.user_name, 'Priya Sharma')
        self.assertEqual(review.user_role, 'Teacher')
        self.assertEqual(review.comment, 'Crispy!')
        self.assertEqual(review.likes, 0)

    def test_submit_needs_user_and_comment(self):
        self.assertFalse(services.submit_review(None, 'Masala Dosa', 5, 'Nice'))
        self.assertFalse(services.submit_review(self.user, 'Masala Dosa', 5, '   '))
        self.assertFalse(services.submit_review(self.user, 'Masala Dosa', 6, 'Nice'))
        self.assertEqual(Review.objects.count(), 0)

    def test_likes_accumulate(self):
        review = services.submit_review(self.user, 'Samosa', 4, 'Good').value

        for _ in range(3):
            services.like_review(review.pk)

        review.refresh_from_db()
        self.assertEqual(review.likes, 3)

    def test_like_missing_review(self):
        result = services.like_review(404)

        self.assertTrue(result.extra['not_found'])

    def test_reviews_survive_user_deletion(self):
        services.submit_review(self.user, 'Samosa', 4, 'Good')

        self.user.delete()

        review = Review.objects.get()
        self.assertIsNone(review.user_id)
        self.assertEqual(review.user_name, 'Priya Sharma')


@override_settings(REVIEW_FETCH_ATTEMPTS=3, REVIEW_FETCH_BACKOFF_SECONDS=0.5)
class FetchReviewsRetryTests(TestCase):

    def test_newest_first(self):
        user = make_user('priya@college.edu')
        first = services.submit_review(user, 'Samosa', 4, 'Good').value
        second = services.submit_review(user, 'Masala Chai', 5, 'Perfect').value
        Review.objects.filter(pk=first.pk).update(created_at=second.created_at.replace(year=2020))

        reviews = services.fetch_reviews().value

        self.assertEqual([r.pk for r in reviews], [second.pk, first.pk])

    def test_retries_with_linear_backoff(self):
        sleep = mock.Mock()
        real = Review.objects.order_by
        calls = {'n': 0}

        def flaky(*args):
            calls['n'] += 1
            if calls['n'] < 3:
                raise DatabaseError('connection reset')
            return real(*args)

        with mock.patch.object(Review.objects, 'order_by', side_effect=flaky):
            result = services.fetch_reviews(sleep=sleep)

        self.assertTrue(result)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [0.5, 1.0])

    def test_gives_up_after_attempts(self):
        sleep = mock.Mock()

        with mock.patch.object(Review.objects, 'order_by', side_effect=DatabaseError('down')):
            result = services.fetch_reviews(sleep=sleep)

        self.assertFalse(result)
        self.assertIn('down', result.error)
        self.assertEqual(sleep.call_count, 2)


class ReviewAPITests(APITestCase):

    def setUp(self):
        MenuItem.objects.create(name="Masala Dosa", category="Breakfast", price=45)
        self.user = make_user('priya@college.edu')

    def post_review(self, **extra):
        payload = {'item_name': 'Masala Dosa', 'rating': 5, 'comment': 'Crispy and hot!'}
        payload.update(extra)
        return self.client.post(reverse('reviews'), payload, format='json')

    def test_registered_user_posts_review(self):
        self.client.force_login(self.user)

        response = self.post_review()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user_name'], 'Priya Sharma')
        self.assertEqual(response.data['user_id'], self.user.pk)

    def test_guest_reads_and_likes_but_cannot_post(self):
        review = services.submit_review(self.user, 'Masala Dosa', 5, 'Great').value
        self.client.post(reverse('guest'))

        listing = self.client.get(reverse('reviews'))
        liked = self.client.post(reverse('review_like', args=[review.pk]))
        posted = self.post_review()

        self.assertEqual(len(listing.data), 1)
        self.assertEqual(liked.data['likes'], 1)
        self.assertEqual(posted.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_read(self):
        self.assertEqual(self.client.get(reverse('reviews')).status_code, status.HTTP_403_FORBIDDEN)

    def test_validation(self):
        self.client.force_login(self.user)

        off_menu = self.post_review(item_name='Pizza')
        bad_rating = self.post_review(rating=0)

        self.assertEqual(off_menu.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(bad_rating.status_code, status.HTTP_400_BAD_REQUEST)

    def test_blank_comment(self):
        self.client.force_login(self.user)

        response = self.post_review(comment='   ')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Review.objects.count(), 0)

    def test_like_missing(self):
        self.client.post(reverse('guest'))

        response = self.client.post(reverse('review_like', args=[999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
