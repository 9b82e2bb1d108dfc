from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema, OpenApiExample

from menu.models import MenuItem
from .cart import Cart
from .serializers import (
    CartSerializer, AddToCartSerializer, UpdateQuantitySerializer, cart_payload
)


class CartView(APIView):
    @extend_schema(
        summary="Get cart",
        description="Current session's cart with item count and total price",
        responses={200: CartSerializer},
        examples=[
            OpenApiExample(
                'Cart Response',
                summary='Two dosas and a chai',
                value={
                    'items': [
                        {'id': 1, 'name': 'Masala Dosa', 'price': 45, 'quantity': 2},
                        {'id': 4, 'name': 'Masala Chai', 'price': 15, 'quantity': 1}
                    ],
                    'total_items': 3,
                    'total_price': 105
                }
            )
        ]
    )
    def get(self, request):
        return Response(cart_payload(Cart(request.session)))

    @extend_schema(
        summary="Clear cart",
        responses={200: CartSerializer}
    )
    def delete(self, request):
        cart = Cart(request.session)
        cart.clear()
        return Response(cart_payload(cart))


class CartItemsView(APIView):
    @extend_schema(
        summary="Add to cart",
        description="Add one unit of a menu item; an item already in the cart has its quantity bumped",
        request=AddToCartSerializer,
        responses={200: CartSerializer},
        examples=[
            OpenApiExample('Add Item Example', value={'menu_item_id': 1})
        ]
    )
    def post(self, request):
        serializer = AddToCartSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        item = MenuItem.objects.get(id=serializer.validated_data['menu_item_id'])
        cart = Cart(request.session)
        cart.add(item)
        return Response(cart_payload(cart))


class CartItemView(APIView):
    @extend_schema(
        summary="Set quantity",
        description="Set an item's quantity directly; 0 or less removes it",
        request=UpdateQuantitySerializer,
        responses={200: CartSerializer}
    )
    def put(self, request, item_id):
        serializer = UpdateQuantitySerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cart = Cart(request.session)
        if item_id not in cart:
            get_object_or_404(MenuItem, id=item_id)
        cart.update_quantity(item_id, serializer.validated_data['quantity'])
        return Response(cart_payload(cart))

    @extend_schema(
        summary="Remove one unit",
        description="Decrement an item's quantity by one, dropping it at zero. No-op for items not in the cart.",
        responses={200: CartSerializer}
    )
    def delete(self, request, item_id):
        cart = Cart(request.session)
        cart.remove(item_id)
        return Response(cart_payload(cart))
