from django.conf import settings
from django.db import models


class Profile(models.Model):
	STUDENT = 'Student'
	TEACHER = 'Teacher'
	ADMIN = 'Admin'
	ROLE_CHOICES = [
		(STUDENT, 'Student'),
		(TEACHER, 'Teacher'),
		(ADMIN, 'Admin'),
	]

	user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='profile')
	full_name = models.CharField(max_length=150)
	phone = models.CharField(max_length=15, blank=True)
	roll_number = models.CharField(max_length=30, unique=True, null=True, blank=True)
	role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=STUDENT)
	profile_photo_url = models.CharField(max_length=500, blank=True)
	date_of_birth = models.DateField(null=True, blank=True)
	year_of_study = models.PositiveSmallIntegerField(null=True, blank=True)
	branch = models.CharField(max_length=100, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ['-created_at']

	def __str__(self):
		return f"{self.full_name} ({self.role})"

	def save(self, *args, **kwargs):
		# Roll numbers are stored upper-cased; blank means "none"
		self.roll_number = self.roll_number.strip().upper() if self.roll_number else None
		super().save(*args, **kwargs)

	@property
	def is_admin(self):
		return self.role == self.ADMIN

	@property
	def email(self):
		return self.user.email
