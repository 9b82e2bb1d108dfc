import uuid

from django.conf import settings
from django.db import models


class Order(models.Model):
	STATUS_CHOICES = [
		('pending', 'Pending'),
		('accepted', 'Accepted'),
		('completed', 'Completed'),
		('cancelled', 'Cancelled'),
		('rejected', 'Rejected'),
	]
	PAYMENT_METHOD_CHOICES = [
		('cash', 'Cash'),
		('card', 'Card'),
		('upi', 'UPI'),
	]
	PAYMENT_STATUS_CHOICES = [
		('pending', 'Pending'),
		('paid', 'Paid'),
	]

	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	order_number = models.CharField(max_length=32, unique=True)
	user_id = models.CharField(max_length=64, db_index=True)  # purchaser id, or the guest sentinel
	customer_name = models.CharField(max_length=150, blank=True)
	items = models.JSONField()  # snapshot: [{"id": 1, "name": "Masala Dosa", "price": 45, "quantity": 2, ...}]
	total_amount = models.PositiveIntegerField()
	room_number = models.CharField(max_length=30)
	contact_number = models.CharField(max_length=254)  # e-mail or 10-digit phone
	payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES, default='upi')
	status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
	payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default='pending')
	special_instructions = models.TextField(blank=True, null=True)
	placed_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ['-placed_at']

	def __str__(self):
		return f"Order {self.order_number} - {self.status}"

	@property
	def is_guest_order(self):
		return self.user_id == settings.GUEST_USER_ID
