"""Profile bootstrap for new users."""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def ensure_profile(sender, instance, created, raw=False, **kwargs):
    """Give every new user an empty Profile; fixtures loaded raw are skipped."""
    if not created or raw:
        return

    from authentication.models import Profile

    Profile.objects.get_or_create(user=instance)
    logger.debug(f"Profile created for user {instance.id}")
