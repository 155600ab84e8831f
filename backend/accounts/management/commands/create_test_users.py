from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password
from accounts.models import CustomUser


class Command(BaseCommand):
    help = 'Create test users with different roles'

    def handle(self, *args, **options):
        users_data = [
            {
                'username': 'admin_user',
                'password': 'admin_password',
                'role': CustomUser.ADMIN,
            },
            {
                'username': 'dispatcher_user',
                'password': 'dispatcher_password',
                'role': CustomUser.DISPATCHER,
            },
            {
                'username': 'accountant_user',
                'password': 'accountant_password',
                'role': CustomUser.ACCOUNTANT,
            },
        ]

        for user_data in users_data:
            if CustomUser.objects.filter(username=user_data['username']).exists():
                self.stdout.write(
                    self.style.WARNING(f"User {user_data['username']} already exists")
                )
                continue

            user = CustomUser.objects.create(
                username=user_data['username'],
                password=make_password(user_data['password']),
                role=user_data['role']
            )

            self.stdout.write(
                self.style.SUCCESS(f"Successfully created {user_data['role']} user: {user.username}")
            )

        self.stdout.write(
            self.style.SUCCESS("All test users created successfully!")
        )
