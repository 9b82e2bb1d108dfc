from unittest import mock

import redis
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APITestCase

from . import realtime
from .realtime import Change, ChangeFeed, INSERT, publish_change
from .results import Result


class ResultTests(SimpleTestCase):

    def test_truthiness_and_extra(self):
        ok = Result.ok(5, path='x')
        failed = Result.fail('nope', not_found=True)

        self.assertTrue(ok)
        self.assertEqual(ok.extra, {'path': 'x'})
        self.assertFalse(failed)
        self.assertEqual(failed.error, 'nope')


class ChangeTests(SimpleTestCase):

    def test_json_round(self):
        change = Change('orders', INSERT, 'abc')

        self.assertEqual(Change.from_json(change.to_json()), change)

    def test_malformed(self):
        for raw in ['not json', '{"event": "INSERT"}', 'null']:
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    Change.from_json(raw)


@override_settings(CHANGE_FEED_PREFIX='test:changes')
class ChangeFeedTests(SimpleTestCase):

    def setUp(self):
        self.redis_client = mock.Mock()
        self.feed = ChangeFeed(redis_client=self.redis_client)

    def test_publish(self):
        self.assertTrue(self.feed.publish(Change('orders', INSERT, '1')))

        channel, payload = self.redis_client.publish.call_args[0]
        self.assertEqual(channel, 'test:changes:orders')
        self.assertEqual(Change.from_json(payload).id, '1')

    def test_publish_survives_redis_outage(self):
        self.redis_client.publish.side_effect = redis.ConnectionError('refused')

        with self.assertLogs('canteen.realtime', level='WARNING'):
            self.assertFalse(self.feed.publish(Change('orders', INSERT, '1')))

    def test_subscribe_dispatches_changes(self):
        pubsub = self.redis_client.pubsub.return_value
        received = []

        subscription = self.feed.subscribe('orders', received.append)

        callbacks = pubsub.subscribe.call_args[1]
        on_message = callbacks['test:changes:orders']
        on_message({'data': Change('orders', INSERT, '7').to_json()})
        on_message({'data': 'garbage'})
        self.assertEqual(received, [Change('orders', INSERT, '7')])

        subscription.close()
        subscription.close()
        pubsub.run_in_thread.return_value.stop.assert_called_once_with()
        pubsub.close.assert_called_once_with()


class SharedClientTests(SimpleTestCase):

    @override_settings(REDIS_HOST='cache.internal', REDIS_PORT='6380', REDIS_DB='2')
    def test_feeds_share_one_client(self):
        with mock.patch.object(realtime, '_redis_client', None), \
                mock.patch('canteen.realtime.redis.Redis') as redis_class:
            first = ChangeFeed()
            second = ChangeFeed()

        redis_class.assert_called_once_with(host='cache.internal', port=6380, db=2, decode_responses=True)
        self.assertIs(first.redis_client, second.redis_client)

    def test_publish_change_reuses_client(self):
        shared = mock.Mock()
        with mock.patch.object(realtime, '_redis_client', shared), \
                mock.patch('canteen.realtime.redis.Redis') as redis_class, \
                mock.patch('canteen.realtime.transaction.on_commit', side_effect=lambda callback: callback()):
            publish_change('orders', INSERT, 1)
            publish_change('orders', INSERT, 2)

        redis_class.assert_not_called()
        self.assertEqual(shared.publish.call_count, 2)


class PublishAfterCommitTests(TestCase):

    def test_publishes_only_on_commit(self):
        with mock.patch('canteen.realtime.ChangeFeed') as feed_class:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                publish_change('orders', INSERT, 3)
                feed_class.return_value.publish.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        feed_class.return_value.publish.assert_called_once_with(Change('orders', INSERT, '3'))


class SchemaTests(APITestCase):

    def test_schema_renders(self):
        response = self.client.get(reverse('schema'))

        self.assertEqual(response.status_code, 200)
