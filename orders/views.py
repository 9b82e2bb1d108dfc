from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from accounts.session import SessionManager
from canteen.permissions import IsCanteenAdmin, IsRegisteredUser
from cart.cart import Cart
from . import services
from .models import Order
from .serializers import (
    OrderSerializer, PlaceOrderSerializer, StatusUpdateSerializer, OrderStatsSerializer
)


def failure(result, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR):
    if result.extra.get('not_found'):
        status_code = status.HTTP_404_NOT_FOUND
    elif result.extra.get('conflict'):
        status_code = status.HTTP_409_CONFLICT
    return Response({'error': result.error}, status=status_code)


class PlaceOrderView(APIView):
    @extend_schema(
        summary="Place order",
        description="Turn the session cart into a pending order. Works for registered users and guests; "
                    "guests must give a name. The contact is an email or a 10-digit phone number, and "
                    "the cart is emptied once the order is stored.",
        request=PlaceOrderSerializer,
        responses={201: OrderSerializer, 400: OpenApiTypes.OBJECT},
        examples=[
            OpenApiExample(
                'Place Order Example',
                value={
                    'room_number': 'B-204',
                    'contact_number': '9876543210',
                    'payment_method': 'cash',
                    'special_instructions': 'Less spicy please'
                }
            ),
            OpenApiExample(
                'Guest Order Example',
                value={
                    'room_number': 'Library',
                    'contact_number': 'visitor@gmail.com',
                    'customer_name': 'Priya',
                    'payment_method': 'upi'
                }
            )
        ]
    )
    def post(self, request):
        manager = SessionManager(request)
        serializer = PlaceOrderSerializer(data=request.data, context={'is_guest': manager.is_guest})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        cart = Cart(request.session)
        if not cart:
            return Response({'error': 'Your cart is empty'}, status=status.HTTP_400_BAD_REQUEST)

        result = services.create_order(
            cart,
            user=manager.user,
            **serializer.validated_data
        )
        if not result:
            return failure(result)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_201_CREATED)


class MyOrdersView(APIView):
    permission_classes = [IsRegisteredUser]

    @extend_schema(
        summary="My orders",
        description="Order history of the signed-in user, newest first",
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, enum=[value for value, _ in Order.STATUS_CHOICES])
        ],
        responses={200: OrderSerializer(many=True)}
    )
    def get(self, request):
        result = services.get_user_orders(
            SessionManager(request).user.pk,
            request.query_params.get('status')
        )
        if not result:
            return failure(result)
        return Response(OrderSerializer(result.value, many=True).data)


class OrderDetailView(APIView):
    permission_classes = [IsRegisteredUser]

    @extend_schema(
        summary="Delete order from history",
        responses={204: None, 404: OpenApiTypes.OBJECT}
    )
    def delete(self, request, order_id):
        result = services.delete_order(order_id, SessionManager(request).user)
        if not result:
            return failure(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminOrderListView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="All orders",
        description="Every order, newest first (admin only)",
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, enum=[value for value, _ in Order.STATUS_CHOICES])
        ],
        responses={200: OrderSerializer(many=True)}
    )
    def get(self, request):
        result = services.get_all_orders()
        if not result:
            return failure(result)
        orders = result.value
        status_filter = request.query_params.get('status')
        if status_filter:
            orders = [order for order in orders if order.status == status_filter]
        return Response(OrderSerializer(orders, many=True).data)


class AdminOrderStatusView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="Update order status",
        description="pending -> accepted -> completed, or cancelled/rejected from pending or accepted. "
                    "Illegal moves, including accepting twice, return 409.",
        request=StatusUpdateSerializer,
        responses={200: OrderSerializer, 404: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
        examples=[OpenApiExample('Accept', value={'status': 'accepted'})]
    )
    def post(self, request, order_id):
        serializer = StatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        result = services.update_order_status(order_id, serializer.validated_data['status'])
        if not result:
            return failure(result)
        return Response(OrderSerializer(result.value).data)


class AdminAcceptPendingView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="Accept all pending",
        request=None,
        responses={200: OpenApiTypes.OBJECT}
    )
    def post(self, request):
        result = services.accept_all_pending()
        if not result:
            return failure(result)
        return Response({'accepted': [str(order_id) for order_id in result.value]})


class AdminOrderStatsView(APIView):
    permission_classes = [IsCanteenAdmin]

    @extend_schema(
        summary="Order statistics",
        description="Counts per status, revenue from completed orders and today's order count",
        responses={200: OrderStatsSerializer}
    )
    def get(self, request):
        result = services.order_stats()
        if not result:
            return failure(result)
        return Response(OrderStatsSerializer(result.value).data)
