from django.core.management.base import BaseCommand
from menu.models import MenuItem


DEFAULT_MENU = [
    {
        "name": "Masala Dosa",
        "category": "Breakfast",
        "price": 45,
        "type": "Veg",
        "rating": 4.8,
        "prep_time": "15 min",
        "description": "Crispy dosa with spiced potato filling and chutneys",
        "is_special": True,
        "image": "/assets/masala-dosa.jpg"
    },
    {
        "name": "Chicken Biryani",
        "category": "Main Course",
        "price": 120,
        "type": "Non-Veg",
        "rating": 4.9,
        "prep_time": "25 min",
        "description": "Aromatic basmati rice with tender chicken and spices",
        "is_special": True,
        "image": "/assets/chicken-biryani.jpg"
    },
    {
        "name": "Veg Sandwich",
        "category": "Snacks",
        "price": 35,
        "type": "Veg",
        "rating": 4.6,
        "prep_time": "8 min",
        "description": "Fresh vegetables with mint chutney in toasted bread",
        "is_special": False
    },
    {
        "name": "Masala Chai",
        "category": "Beverages",
        "price": 15,
        "type": "Veg",
        "rating": 4.7,
        "prep_time": "5 min",
        "description": "Traditional Indian tea with aromatic spices",
        "is_special": False
    },
    {
        "name": "Paneer Butter Masala",
        "category": "Main Course",
        "price": 95,
        "type": "Veg",
        "rating": 4.8,
        "prep_time": "20 min",
        "description": "Rich and creamy paneer curry with butter naan",
        "is_special": False
    },
    {
        "name": "Samosa",
        "category": "Snacks",
        "price": 20,
        "type": "Veg",
        "rating": 4.5,
        "prep_time": "5 min",
        "description": "Crispy pastry filled with spiced potatoes",
        "is_special": False
    },
    {
        "name": "Mutton Curry",
        "category": "Main Course",
        "price": 150,
        "type": "Non-Veg",
        "rating": 4.7,
        "prep_time": "30 min",
        "description": "Tender mutton cooked in aromatic spices",
        "is_special": True
    },
    {
        "name": "Idli Sambar",
        "category": "Breakfast",
        "price": 40,
        "type": "Veg",
        "rating": 4.6,
        "prep_time": "12 min",
        "description": "Steamed rice cakes with lentil curry and coconut chutney",
        "is_special": False
    },
]


class Command(BaseCommand):
    help = 'Seed the database with the canteen menu'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing menu items before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing menu items...')
            MenuItem.objects.all().delete()
            self.stdout.write(
                self.style.SUCCESS('Successfully cleared menu items')
            )

        created_items = []
        for item_data in DEFAULT_MENU:
            defaults = {key: value for key, value in item_data.items() if key != 'name'}
            item, created = MenuItem.objects.get_or_create(
                name=item_data['name'],
                defaults=defaults
            )
            if created:
                created_items.append(item)
                self.stdout.write(
                    f"Created: {item.name} - ₹{item.price} ({item.category}, {item.type})"
                )
            else:
                self.stdout.write(
                    f"Already exists: {item.name}"
                )

        self.stdout.write(
            self.style.SUCCESS(f'\nTotal new menu items created: {len(created_items)}')
        )

        self.stdout.write("\nAll menu items in database:")
        self.stdout.write("-" * 60)
        for item in MenuItem.objects.all().order_by('category', 'name'):
            special = '*' if item.is_special else ' '
            self.stdout.write(
                f"ID: {item.id:2d} | {item.name:22s} | ₹{item.price:4d} | {item.type:7s} | {item.rating:.1f}{special}"
            )
