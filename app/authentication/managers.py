"""
User manager for email-based identities.

Display attributes passed to create_user() are routed to the Profile row
instead of the User row.
"""

from django.contrib.auth.models import BaseUserManager

PROFILE_FIELDS = ("first_name", "last_name", "username", "avatar_url")


class UserManager(BaseUserManager):
    """
    Manager creating users keyed by email.

    Usage:
        user = User.objects.create_user(
            email="ada@example.com",
            password="securepassword",
            first_name="Ada",
            avatar_url="https://cdn.example.com/avatars/ada.png",
        )
    """

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")

        profile_fields = {
            field: extra_fields.pop(field)
            for field in PROFILE_FIELDS
            if field in extra_fields
        }
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=self.normalize_email(email), **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)

        if profile_fields:
            # post_save already created the empty row
            profile = user.profile
            for field, value in profile_fields.items():
                setattr(profile, field, value)
            profile.save()

        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)

    def active(self):
        """Users that may still act in conversations."""
        return self.filter(is_active=True)
