import time

from django.core.management.base import BaseCommand

from orders.services import get_all_orders, subscribe_to_orders


class Command(BaseCommand):
    help = 'Follow the order board, reprinting it on every order change'

    def add_arguments(self, parser):
        parser.add_argument(
            '--status',
            help='Only show orders with this status',
        )

    def handle(self, *args, **options):
        status_filter = options.get('status')

        def show(orders):
            if status_filter:
                orders = [order for order in orders if order.status == status_filter]
            self.stdout.write(f'--- {len(orders)} orders ---')
            for order in orders:
                self.stdout.write(
                    f'{order.order_number}  {order.status:<10} Rs.{order.total_amount:<6} '
                    f'room {order.room_number}  {order.customer_name or order.user_id}'
                )

        initial = get_all_orders()
        if not initial:
            self.stderr.write(self.style.ERROR(f'Could not load orders: {initial.error}'))
            return
        show(initial.value)

        subscription = subscribe_to_orders(show)
        self.stdout.write(self.style.SUCCESS('Watching for order changes, Ctrl+C to stop'))
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stdout.write('Stopping')
        finally:
            subscription.close()
