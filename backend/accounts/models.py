# backend/accounts/models.py

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    ADMIN = 'admin'
    DISPATCHER = 'dispatcher'
    ACCOUNTANT = 'accountant'
    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (DISPATCHER, 'Dispatcher'),
        (ACCOUNTANT, 'Accountant'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=DISPATCHER)

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
