from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models


class Review(models.Model):
	user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='reviews')
	# Copied from the profile when written; later profile edits don't rewrite old reviews
	user_name = models.CharField(max_length=150)
	user_role = models.CharField(max_length=10)
	item_name = models.CharField(max_length=100)
	rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
	comment = models.TextField()
	likes = models.PositiveIntegerField(default=0)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ['-created_at']

	def __str__(self):
		return f"{self.user_name} on {self.item_name}: {self.rating}/5"
