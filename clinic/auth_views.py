"""
Authentication views.

Login issues a JWT access/refresh pair (djangorestframework-simplejwt);
refresh rotates the pair and logout blacklists refresh tokens.  Signup
only ever creates patients: staff accounts are provisioned by an
administrator.
"""
from __future__ import annotations

from django.contrib.auth import authenticate
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.exceptions import DomainValidationError
from clinic.models import Insurance, User
from clinic.permissions import IsPatientRole
from clinic.serializers.auth import InsuranceUpdateSerializer, LoginSerializer, RegisterSerializer, UserSerializer
from clinic.services.audit import log_action

INVALID_CREDENTIALS = 'Invalid email or password.'


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class RegisterRateThrottle(AnonRateThrottle):
    scope = 'register'


def _token_payload(user: User) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        'ok': True,
        'access': str(refresh.access_token),
        'refresh': str(refresh),
        'user': UserSerializer(user).data,
    }


# ---------------------------------------------------------------------
# Email/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """Log in with email and password; any submitted role is ignored."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']

    account = User.objects.filter(email__iexact=email).only('username').first()
    user = None
    if account is not None:
        user = authenticate(request, username=account.username, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'email': email, 'ip': request.META.get('REMOTE_ADDR')})
        return Response({'ok': False, 'error': INVALID_CREDENTIALS, 'code': 'invalid_credentials'}, status=401)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    return Response(_token_payload(user), status=200)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    user = User.objects.create_user(
        username=v['email'],
        email=v['email'],
        password=v['password'],
        role=User.ROLE_PATIENT,
        full_name=v['full_name'],
        phone=v.get('phone', ''),
        national_id=v.get('national_id', ''),
        insurance_id=v.get('insurance_id'),
    )
    log_action(user=user, action='register', object_type='user', object_id=user.id)
    return Response(_token_payload(user), status=201)


# ---------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(UserSerializer(request.user).data)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsPatientRole])
def me_insurance_view(request):
    """Attach (or clear with ``null``) the caller's insurance."""
    s = InsuranceUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user: User = request.user  # type: ignore[assignment]
    insurance_id = s.validated_data['insurance_id']
    user.insurance = Insurance.objects.get(pk=insurance_id) if insurance_id else None
    user.save(update_fields=['insurance'])
    log_action(user=user, action='insurance_update', object_type='user', object_id=user.id,
               detail={'insurance': insurance_id})
    return Response(UserSerializer(user).data)


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token (and rotated refresh token)."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    return Response({'ok': True, **s.validated_data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the user's outstanding ones."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError:
            raise DomainValidationError('Invalid refresh token.')
        if str(token.get('user_id')) != str(request.user.pk):
            raise PermissionError('This token does not belong to you.')
        token.blacklist()
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
