import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework import status
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from canteen.permissions import HasSessionIdentity, IsCanteenAdmin
from canteen.storage import upload_photo
from .models import MenuItem
from .serializers import MenuItemSerializer, MenuPhotoSerializer

logger = logging.getLogger(__name__)


class MenuListView(APIView):
    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsCanteenAdmin()]
        return [HasSessionIdentity()]

    @extend_schema(
        summary="List menu items",
        description="Browse the canteen catalog, optionally filtered by category, type or today's specials",
        parameters=[
            OpenApiParameter(name='category', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Breakfast, Main Course, Snacks, Beverages or Desserts'),
            OpenApiParameter(name='type', type=OpenApiTypes.STR, location=OpenApiParameter.QUERY,
                             description='Veg or Non-Veg'),
            OpenApiParameter(name='special', type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY,
                             description='Only specials'),
        ],
        responses={200: MenuItemSerializer(many=True)}
    )
    def get(self, request):
        items = MenuItem.objects.all()

        category = request.query_params.get('category')
        if category and category != 'All':
            items = items.filter(category=category)

        item_type = request.query_params.get('type')
        if item_type and item_type != 'All':
            items = items.filter(type=item_type)

        if request.query_params.get('special') in ('1', 'true', 'True'):
            items = items.filter(is_special=True)

        return Response(MenuItemSerializer(items, many=True).data)

    @extend_schema(
        summary="Add menu item",
        description="Append an item to the catalog (admin only)",
        request=MenuItemSerializer,
        responses={201: MenuItemSerializer},
        examples=[
            OpenApiExample(
                'Add Item Example',
                summary='Add Masala Dosa',
                value={
                    'name': 'Masala Dosa', 'category': 'Breakfast', 'price': 45, 'type': 'Veg',
                    'rating': 4.8, 'prep_time': '15 min', 'is_special': True,
                    'description': 'Crispy dosa with spiced potato filling and chutneys'
                }
            )
        ]
    )
    def post(self, request):
        serializer = MenuItemSerializer(data=request.data)
        if serializer.is_valid():
            item = serializer.save()
            logger.info('Menu item %s (%s) added', item.id, item.name)
            return Response(MenuItemSerializer(item).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class MenuItemDetailView(APIView):
    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsCanteenAdmin()]
        return [HasSessionIdentity()]

    @extend_schema(
        summary="Get menu item",
        responses={200: MenuItemSerializer}
    )
    def get(self, request, item_id):
        item = get_object_or_404(MenuItem, id=item_id)
        return Response(MenuItemSerializer(item).data)

    @extend_schema(
        summary="Remove menu item",
        description="Remove an item from the catalog (admin only). Placed orders keep their own snapshot.",
        responses={204: None}
    )
    def delete(self, request, item_id):
        item = get_object_or_404(MenuItem, id=item_id)
        item.delete()
        logger.info('Menu item %s removed', item_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MenuPhotoView(APIView):
    permission_classes = [IsCanteenAdmin]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        summary="Upload menu photo",
        description="Store a photo under menu-photos/ and point the item's image at it",
        request=MenuPhotoSerializer,
        responses={200: MenuItemSerializer, 500: OpenApiTypes.OBJECT}
    )
    def post(self, request, item_id):
        item = get_object_or_404(MenuItem, id=item_id)

        serializer = MenuPhotoSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = upload_photo('menu-photos', serializer.validated_data['photo'])
        if not result:
            return Response({'error': result.error}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        item.image = result.value
        item.save(update_fields=['image'])
        return Response(MenuItemSerializer(item).data)
