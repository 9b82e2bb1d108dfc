from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from accounts.session import SessionManager
from canteen.permissions import IsRegisteredUser
from . import services
from .serializers import ReviewSerializer, SubmitReviewSerializer


class ReviewListView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsRegisteredUser()]
        return super().get_permissions()

    @extend_schema(
        summary="List reviews",
        description="All reviews, newest first",
        responses={200: ReviewSerializer(many=True)}
    )
    def get(self, request):
        result = services.fetch_reviews()
        if not result:
            return Response({'error': result.error}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(ReviewSerializer(result.value, many=True).data)

    @extend_schema(
        summary="Write a review",
        description="Registered users only. Name and role are copied from the profile at write time.",
        request=SubmitReviewSerializer,
        responses={201: ReviewSerializer, 400: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample('Review Example', value={
                'item_name': 'Masala Dosa', 'rating': 5, 'comment': 'Crispy and hot!'
            })
        ]
    )
    def post(self, request):
        serializer = SubmitReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = services.submit_review(SessionManager(request).user, **serializer.validated_data)
        if not result:
            return Response({'error': result.error}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ReviewSerializer(result.value).data, status=status.HTTP_201_CREATED)


class ReviewLikeView(APIView):

    @extend_schema(
        summary="Like a review",
        request=None,
        responses={200: ReviewSerializer, 404: OpenApiTypes.OBJECT}
    )
    def post(self, request, review_id):
        result = services.like_review(review_id)
        if not result:
            code = status.HTTP_404_NOT_FOUND if result.extra.get('not_found') else status.HTTP_500_INTERNAL_SERVER_ERROR
            return Response({'error': result.error}, status=code)
        return Response(ReviewSerializer(result.value).data)
