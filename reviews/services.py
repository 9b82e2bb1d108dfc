import logging
import time

from django.conf import settings
from django.db import DatabaseError
from django.db.models import F

from canteen.realtime import INSERT, UPDATE, publish_change
from canteen.results import Result
from .models import Review

logger = logging.getLogger(__name__)


def fetch_reviews(sleep=time.sleep) -> Result:
    """
    All reviews, newest first

    Retries on database errors, sleeping ``REVIEW_FETCH_BACKOFF_SECONDS * attempt``
    between attempts.

    Args:
        sleep: Sleep function, replaceable in tests

    Returns:
        Result with the list of reviews, or the last error once attempts run out
    """
    attempts = max(1, int(getattr(settings, 'REVIEW_FETCH_ATTEMPTS', 3)))
    backoff = float(getattr(settings, 'REVIEW_FETCH_BACKOFF_SECONDS', 0.5))

    last_error = None
    for attempt in range(1, attempts + 1):
        try:
            return Result.ok(list(Review.objects.order_by('-created_at')))
        except DatabaseError as exc:
            last_error = exc
            logger.warning('Fetching reviews failed (attempt %s/%s): %s', attempt, attempts, exc)
            if attempt < attempts:
                sleep(backoff * attempt)

    logger.error('Giving up on reviews after %s attempts', attempts)
    return Result.fail(f'Failed to load reviews: {last_error}')


def submit_review(user, item_name, rating, comment) -> Result:
    if user is None or not user.is_authenticated:
        return Result.fail('Please log in to leave a review')

    comment = (comment or '').strip()
    if not comment:
        return Result.fail('Please write a comment')
    if not 1 <= int(rating) <= 5:
        return Result.fail('Rating must be between 1 and 5')

    profile = getattr(user, 'profile', None)
    try:
        review = Review.objects.create(
            user=user,
            user_name=profile.full_name if profile is not None else user.get_username(),
            user_role=profile.role if profile is not None else '',
            item_name=item_name,
            rating=int(rating),
            comment=comment
        )
    except DatabaseError as exc:
        logger.error('Error saving review by %s: %s', user.pk, exc)
        return Result.fail('Failed to submit review')

    publish_change('reviews', INSERT, review.pk)
    logger.info('Review %s for %s by %s', review.pk, item_name, user.pk)
    return Result.ok(review)


def like_review(review_id) -> Result:
    """Add one like; no per-user dedup"""
    try:
        updated = Review.objects.filter(pk=review_id).update(likes=F('likes') + 1)
        if not updated:
            return Result.fail('Review not found', not_found=True)
        review = Review.objects.get(pk=review_id)
    except DatabaseError as exc:
        logger.error('Error liking review %s: %s', review_id, exc)
        return Result.fail(str(exc))

    publish_change('reviews', UPDATE, review_id)
    return Result.ok(review)
