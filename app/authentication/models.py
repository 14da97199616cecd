"""
Identity models.

Every chat, presence and reel operation resolves its actor to a User. The
User row only carries login and account state; what other participants see
(name, avatar) is read from Profile.
"""

import re

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models.functions import Lower

from core.models import BaseModel
from authentication.managers import UserManager

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,30}$")


def validate_username_format(value):
    if not USERNAME_PATTERN.match(value):
        raise ValidationError(
            "Username must be 3-30 characters and contain only "
            "letters, numbers, underscores, and hyphens."
        )


class User(AbstractBaseUser, PermissionsMixin):
    """
    Account identified by email.

    Ids are stable and never reused, so conversations, receipts and views
    reference users by primary key. Deactivated users keep their history but
    can no longer be added to conversations or open a websocket.
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    @property
    def _profile(self):
        try:
            return self.profile
        except Profile.DoesNotExist:
            return None

    @property
    def email_handle(self):
        return self.email.split("@")[0]

    def get_full_name(self):
        """Display name: profile full name, then username, then email handle."""
        profile = self._profile
        if profile is None:
            return self.email_handle
        return profile.full_name or profile.username or self.email_handle

    def get_short_name(self):
        profile = self._profile
        return (profile and profile.first_name) or self.email_handle

    @property
    def avatar_url(self):
        profile = self._profile
        return (profile and profile.avatar_url) or None


class Profile(BaseModel):
    """
    What other users see of an account: name, handle and avatar.

    Created empty by a post_save signal so display-name lookups never miss.
    Usernames are optional; non-blank ones are unique ignoring case.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
        help_text="User this profile belongs to",
    )

    first_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's first name",
    )
    last_name = models.CharField(
        max_length=150,
        blank=True,
        help_text="User's last name",
    )

    username = models.CharField(
        max_length=30,
        blank=True,
        db_index=True,
        validators=[validate_username_format],
        help_text="Unique username (3-30 chars, alphanumeric + _ + -)",
    )

    avatar_url = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL in object storage",
    )

    class Meta:
        db_table = "authentication_profile"
        verbose_name = "profile"
        verbose_name_plural = "profiles"
        constraints = [
            # Case-insensitive unique constraint for username
            models.UniqueConstraint(
                Lower("username"),
                name="unique_username_case_insensitive",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    @property
    def full_name(self):
        """Return full name or empty string."""
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        """Normalize username before saving."""
        if self.username:
            self.username = self.username.lower()
        super().save(*args, **kwargs)
