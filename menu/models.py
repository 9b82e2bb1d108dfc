from django.db import models


class MenuItem(models.Model):
	CATEGORY_CHOICES = [
		('Breakfast', 'Breakfast'),
		('Main Course', 'Main Course'),
		('Snacks', 'Snacks'),
		('Beverages', 'Beverages'),
		('Desserts', 'Desserts'),
	]
	TYPE_CHOICES = [
		('Veg', 'Veg'),
		('Non-Veg', 'Non-Veg'),
	]

	name = models.CharField(max_length=100)
	category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
	price = models.PositiveIntegerField()  # whole rupees
	type = models.CharField(max_length=10, choices=TYPE_CHOICES, default='Veg')
	rating = models.FloatField(default=0)
	prep_time = models.CharField(max_length=30, blank=True)  # e.g. "15 min"
	description = models.TextField(blank=True)
	is_special = models.BooleanField(default=False)
	image = models.CharField(max_length=500, blank=True, default='/placeholder.svg')
	is_available = models.BooleanField(default=True)

	class Meta:
		ordering = ['id']

	def __str__(self):
		return self.name

	def as_cart_entry(self):
		"""Plain dict of the catalog fields a cart line carries"""
		return {
			'id': self.id,
			'name': self.name,
			'category': self.category,
			'price': self.price,
			'type': self.type,
			'rating': self.rating,
			'prep_time': self.prep_time,
			'description': self.description,
			'is_special': self.is_special,
			'image': self.image,
		}
