import logging

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.utils import timezone

from canteen.results import Result
from .models import Profile

logger = logging.getLogger(__name__)


def list_users() -> Result:
    try:
        profiles = list(Profile.objects.select_related('user').order_by('-created_at'))
    except DatabaseError as exc:
        logger.error('Error fetching profiles: %s', exc)
        return Result.fail(str(exc))
    return Result.ok(profiles)


def get_user(user_id) -> Result:
    try:
        profile = Profile.objects.select_related('user').filter(user_id=user_id).first()
    except DatabaseError as exc:
        logger.error('Error fetching profile %s: %s', user_id, exc)
        return Result.fail(str(exc))
    if profile is None:
        return Result.fail('User not found', not_found=True)
    return Result.ok(profile)


def update_user_role(user_id, role) -> Result:
    if role not in dict(Profile.ROLE_CHOICES):
        return Result.fail(f'Unknown role: {role}')
    try:
        updated = Profile.objects.filter(user_id=user_id).update(role=role, updated_at=timezone.now())
    except DatabaseError as exc:
        logger.error('Error updating role for %s: %s', user_id, exc)
        return Result.fail(str(exc))
    if not updated:
        return Result.fail('User not found', not_found=True)
    logger.info('User %s is now %s', user_id, role)
    return Result.ok()


def delete_user(user_id) -> Result:
    """Remove the profile, then the account behind it"""
    User = get_user_model()
    try:
        with transaction.atomic():
            profiles_deleted, _ = Profile.objects.filter(user_id=user_id).delete()
            users_deleted, _ = User.objects.filter(pk=user_id).delete()
    except DatabaseError as exc:
        logger.error('Error deleting user %s: %s', user_id, exc)
        return Result.fail(str(exc))
    if not profiles_deleted and not users_deleted:
        return Result.fail('User not found', not_found=True)
    logger.info('User %s deleted', user_id)
    return Result.ok()


def user_stats() -> Result:
    try:
        profiles = list(Profile.objects.values('role', 'created_at'))
    except DatabaseError as exc:
        logger.error('Error fetching user stats: %s', exc)
        return Result.fail(str(exc))

    now = timezone.localtime()
    return Result.ok({
        'total': len(profiles),
        'students': sum(1 for p in profiles if p['role'] == Profile.STUDENT),
        'teachers': sum(1 for p in profiles if p['role'] == Profile.TEACHER),
        'admins': sum(1 for p in profiles if p['role'] == Profile.ADMIN),
        'new_this_month': sum(
            1 for p in profiles
            if timezone.localtime(p['created_at']).year == now.year
            and timezone.localtime(p['created_at']).month == now.month
        ),
    })
