from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone
import uuid


class User(AbstractUser):
    """
    Staff user of the forms dashboard.

    Every account has exactly one role. Deactivated accounts keep their
    read marks and preferences and can be restored later.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class UserRole(models.TextChoices):
        SUPERADMIN = 'SUPERADMIN', 'Super Administrator'
        ADMIN = 'ADMIN', 'Administrator'
        USER = 'USER', 'User'

    email = models.EmailField(unique=True)

    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.USER,
        db_index=True,
        help_text="User's role in the dashboard"
    )

    deactivated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the account was deactivated (null while active)"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='users_role_active_idx'),
        ]

    def __str__(self):
        return f"{self.get_full_name()} ({self.get_role_display()})"

    def get_full_name(self):
        """Return the user's full name or username if name is not set."""
        full_name = super().get_full_name()
        return full_name if full_name else self.username

    @property
    def is_deactivated(self):
        return self.deactivated_at is not None

    @property
    def dashboard_route(self):
        """Name of the dashboard this user lands on after login."""
        return {
            self.UserRole.SUPERADMIN: 'superadmin.dashboard',
            self.UserRole.ADMIN: 'admin.dashboard',
            self.UserRole.USER: 'user.dashboard',
        }.get(self.role, 'dashboard')

    def deactivate(self):
        """Disable login without removing the account."""
        self.is_active = False
        self.deactivated_at = timezone.now()
        self.save(update_fields=['is_active', 'deactivated_at', 'updated_at'])

    def restore(self):
        """Re-enable a deactivated account."""
        self.is_active = True
        self.deactivated_at = None
        self.save(update_fields=['is_active', 'deactivated_at', 'updated_at'])
