# users/views.py
"""
USER AUTH VIEWS

Identity boundary only: this service issues JWTs for existing staff
accounts and reports who the caller is. Account/tenant provisioning lives
elsewhere.

Throttling:
- Login attempts are throttled per client IP (scope "login").
- Counters live in the Django cache (settings.CACHES, CACHE_URL). Entries
  expire with the throttle window, so no process-local map grows forever;
  multi-instance deployments must point CACHE_URL at a shared store.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.utils import extend_schema
from rest_framework import generics, serializers, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from permissions.roles import effective_capabilities_for

User = get_user_model()


# ---------------- SERIALIZERS ----------------
class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})


class UserSerializer(serializers.ModelSerializer):
    tenant_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = User
        fields = ["id", "email", "first_name", "last_name", "role", "tenant_id"]
        read_only_fields = fields


# ---------------- THROTTLES (TARGETED) ----------------
class LoginAnonThrottle(AnonRateThrottle):
    """
    Uses REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['login'].
    """

    scope = "login"


class MeUserThrottle(UserRateThrottle):
    scope = "user"


# ---------------- LOGIN (JWT + EMAIL) ----------------
class LoginView(generics.GenericAPIView):
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [LoginAnonThrottle]

    @extend_schema(tags=["auth"], request=LoginSerializer)
    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data["email"]
        password = serializer.validated_data["password"]

        user = User.objects.filter(email__iexact=email).first()
        if user is None or not user.check_password(password):
            return Response(
                {"detail": "Invalid email or password"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if not user.is_active:
            return Response(
                {"detail": "User account is disabled"},
                status=status.HTTP_403_FORBIDDEN,
            )

        refresh = RefreshToken.for_user(user)

        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
                "user": UserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )


# ---------------- CURRENT USER ----------------
class MeView(APIView):
    permission_classes = [IsAuthenticated]
    throttle_classes = [MeUserThrottle]

    @extend_schema(tags=["auth"], responses={200: UserSerializer})
    def get(self, request):
        data = UserSerializer(request.user).data
        data["capabilities"] = sorted(effective_capabilities_for(request, request.user))
        return Response(data, status=status.HTTP_200_OK)
