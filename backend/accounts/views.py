from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .permissions import RATE_PERMISSIONS, has_role
from .serializers import LoginSerializer, RegisterSerializer


def _token_payload(user, token):
    return {'token': token.key, 'role': user.role, 'username': user.username}


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Exchange username/password for an API token and the user's role.
    """
    ser = LoginSerializer(data=request.data)
    if not ser.is_valid():
        # Credential failures are 401, malformed bodies stay 400
        if 'non_field_errors' in ser.errors:
            return Response({'detail': 'Invalid credentials'}, status=status.HTTP_401_UNAUTHORIZED)
        return Response(ser.errors, status=status.HTTP_400_BAD_REQUEST)

    user = ser.validated_data['user']
    token, _ = Token.objects.get_or_create(user=user)
    return Response(_token_payload(user, token))


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    ser = RegisterSerializer(data=request.data)
    ser.is_valid(raise_exception=True)
    user = ser.save()
    token = Token.objects.create(user=user)
    return Response(_token_payload(user, token), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    """Current user plus the rate actions their role allows, for UI gating."""
    user = request.user
    return Response({
        'id': user.id,
        'username': user.username,
        'role': user.role,
        'permissions': {action: has_role(user, roles) for action, roles in RATE_PERMISSIONS.items()},
    })
