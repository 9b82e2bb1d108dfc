import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework import status
from django.db import DatabaseError
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from canteen.permissions import IsCanteenAdmin, IsRegisteredUser
from canteen.storage import upload_photo
from . import services
from .session import SessionManager
from .serializers import (
    ProfileSerializer, SessionStateSerializer, LoginSerializer, RegisterSerializer,
    EmailSerializer, TokenSerializer, SetPasswordSerializer, ProfileUpdateSerializer,
    RoleUpdateSerializer, UserStatsSerializer
)

logger = logging.getLogger(__name__)


def session_response(manager, status_code=status.HTTP_200_OK, **extra):
    data = dict(SessionStateSerializer(manager.state()).data)
    data.update(extra)
    return Response(data, status=status_code)


def failure(result, status_code=status.HTTP_400_BAD_REQUEST):
    if result.extra.get('not_found'):
        status_code = status.HTTP_404_NOT_FOUND
    return Response({'error': result.error}, status=status_code)


class SessionStateView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Current session",
        description="Who is ordering: anonymous, guest or a registered user, plus the admin flag",
        responses={200: SessionStateSerializer}
    )
    def get(self, request):
        return session_response(SessionManager(request))


class LoginView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        description="Log in with email or roll number. Admins also supply the admin access code.",
        request=LoginSerializer,
        responses={200: SessionStateSerializer, 401: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample('Student Login', value={'identifier': 'student@college.edu', 'password': 'student123'}),
            OpenApiExample('Admin Login', value={
                'identifier': 'admin@college.edu', 'password': 'admin123', 'admin_code': 'ADMIN123'
            }),
        ]
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        manager = SessionManager(request)
        result = manager.login(
            serializer.validated_data['identifier'],
            serializer.validated_data['password'],
            serializer.validated_data.get('admin_code') or None
        )
        if not result:
            return failure(result, status.HTTP_401_UNAUTHORIZED)
        return session_response(manager)


class RegisterView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        description="Create a Student or Teacher account. When email confirmation is on, "
                    "confirmation_pending is true and the session stays logged out.",
        request=RegisterSerializer,
        responses={201: SessionStateSerializer, 400: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample('Register Example', value={
                'full_name': 'Arjun Kumar', 'email': 'arjun@college.edu', 'phone': '9876543210',
                'password': 'secret123', 'role': 'Student', 'roll_number': '21CS042',
                'year_of_study': 3, 'branch': 'CSE'
            })
        ]
    )
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        manager = SessionManager(request)
        result = manager.register(serializer.validated_data)
        if not result:
            return failure(result)
        return session_response(
            manager, status.HTTP_201_CREATED,
            confirmation_pending=result.extra['confirmation_pending']
        )


class GuestView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Continue as guest",
        description="Browse and order without an account. Any signed-in user is logged out.",
        request=None,
        responses={200: SessionStateSerializer}
    )
    def post(self, request):
        manager = SessionManager(request)
        manager.login_as_guest()
        return session_response(manager)


class LogoutView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log out",
        description="End the session and clear the guest flag",
        request=None,
        responses={200: SessionStateSerializer}
    )
    def post(self, request):
        manager = SessionManager(request)
        manager.logout()
        return session_response(manager)


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Request password reset",
        request=EmailSerializer,
        responses={200: OpenApiTypes.OBJECT}
    )
    def post(self, request):
        serializer = EmailSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = SessionManager(request).reset_password(serializer.validated_data['email'])
        if not result:
            return failure(result)
        return Response({'success': True})


class SetPasswordView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Set new password",
        description="Finish a password reset with the uid and token from the reset email",
        request=SetPasswordSerializer,
        responses={200: OpenApiTypes.OBJECT}
    )
    def post(self, request):
        serializer = SetPasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = SessionManager(request).set_new_password(
            serializer.validated_data['uid'],
            serializer.validated_data['token'],
            serializer.validated_data['new_password']
        )
        if not result:
            return failure(result)
        return Response({'success': True})


class ConfirmEmailView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Confirm email",
        request=TokenSerializer,
        responses={200: OpenApiTypes.OBJECT}
    )
    def post(self, request):
        serializer = TokenSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = SessionManager(request).confirm_email(
            serializer.validated_data['uid'],
            serializer.validated_data['token']
        )
        if not result:
            return failure(result)
        return Response({'success': True})


class ProfileView(APIView):
    permission_classes = [IsRegisteredUser]
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    @extend_schema(
        summary="My profile",
        responses={200: ProfileSerializer}
    )
    def get(self, request):
        profile = SessionManager(request).profile
        if profile is None:
            return Response({'error': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(ProfileSerializer(profile).data)

    @extend_schema(
        summary="Edit my profile",
        description="Update profile fields. A photo, if sent, is uploaded first; "
                    "when the upload fails nothing else is changed.",
        request=ProfileUpdateSerializer,
        responses={200: ProfileSerializer, 500: OpenApiTypes.OBJECT}
    )
    def patch(self, request):
        profile = SessionManager(request).profile
        if profile is None:
            return Response({'error': 'Profile not found'}, status=status.HTTP_404_NOT_FOUND)

        serializer = ProfileUpdateSerializer(data=request.data, context={'profile': profile})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        changes = dict(serializer.validated_data)
        photo = changes.pop('photo', None)
        if photo is not None:
            upload = upload_photo('profile-photos', photo)
            if not upload:
                return Response({'error': upload.error}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
            changes['profile_photo_url'] = upload.value

        for field, value in changes.items():
            setattr(profile, field, value)
        try:
            profile.save()
        except DatabaseError as exc:
            logger.error('Profile update failed for %s: %s', profile.user_id, exc)
            return Response({'error': 'Failed to update profile'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(ProfileSerializer(profile).data)


class AdminUserListView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="List users",
        description="All profiles with their email, last sign-in and confirmation state (admin only)",
        responses={200: ProfileSerializer(many=True)}
    )
    def get(self, request):
        result = services.list_users()
        if not result:
            return failure(result, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(ProfileSerializer(result.value, many=True).data)


class AdminUserStatsView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="User statistics",
        responses={200: UserStatsSerializer}
    )
    def get(self, request):
        result = services.user_stats()
        if not result:
            return failure(result, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(UserStatsSerializer(result.value).data)


class AdminUserDetailView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="Get user",
        responses={200: ProfileSerializer}
    )
    def get(self, request, user_id):
        result = services.get_user(user_id)
        if not result:
            return failure(result, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(ProfileSerializer(result.value).data)

    @extend_schema(
        summary="Delete user",
        description="Delete the profile and then the account (admin only)",
        responses={204: None}
    )
    def delete(self, request, user_id):
        manager = SessionManager(request)
        if manager.user is not None and manager.user.pk == user_id:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)

        result = services.delete_user(user_id)
        if not result:
            return failure(result, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminUserRoleView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="Change user role",
        request=RoleUpdateSerializer,
        responses={200: ProfileSerializer},
        examples=[OpenApiExample('Promote', value={'role': 'Admin'})]
    )
    def patch(self, request, user_id):
        serializer = RoleUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = services.update_user_role(user_id, serializer.validated_data['role'])
        if not result:
            return failure(result)
        return Response(ProfileSerializer(services.get_user(user_id).value).data)
