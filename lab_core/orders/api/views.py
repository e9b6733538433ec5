# lab_core/orders/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from lab_core.common import permissions as gate
from lab_core.common.api.pagination import paginate
from lab_core.iam.actor import actor_from_request
from lab_core.orders.api.serializers import OrderCreateSerializer, OrderSerializer, OrderUpdateSerializer
from lab_core.orders.filters import OrderFilter
from lab_core.orders.models import Order
from lab_core.orders.selectors import get_order_or_404, is_order_owner, orders_visible_to
from lab_core.orders.services import OrderService
from lab_core.reports.services import ReportAssembler


class OrderViewSet(viewsets.GenericViewSet):
    """
    Thin API layer:
    - resolves the actor once per request
    - serializer validation
    - delegates writes to OrderService, reads to selectors
    """
    serializer_class = OrderSerializer
    queryset = Order.objects.none()

    @extend_schema(
        responses={200: OrderSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="order_status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="payment_status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="priority", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        actor = actor_from_request(request)
        gate.require(actor, gate.ORDER_VIEW)

        f = OrderFilter(request.query_params, queryset=orders_visible_to(actor))
        if not f.is_valid():
            raise DRFValidationError(f.errors)

        return paginate(request, f.qs, OrderSerializer)

    @extend_schema(request=OrderCreateSerializer, responses={201: OrderSerializer})
    def create(self, request):
        actor = actor_from_request(request)

        ser = OrderCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        order = OrderService.create_order(
            actor=actor,
            patient_user_id=data["patient"],
            doctor_user_id=data.get("doctor"),
            test_ids=data.get("tests") or [],
            package_ids=data.get("packages") or [],
            priority=data.get("priority"),
            notes=data.get("notes") or "",
            payment_method=data.get("payment_method"),
            sample_collection_date=data.get("sample_collection_date"),
            expected_report_date=data.get("expected_report_date"),
        )

        # Re-read with prefetch so output includes tests/packages reliably
        obj = get_order_or_404(order.id)
        return Response(OrderSerializer(obj).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: OrderSerializer})
    def retrieve(self, request, pk=None):
        actor = actor_from_request(request)
        obj = get_order_or_404(pk)
        gate.require(actor, gate.ORDER_VIEW, gate.ResourceState(is_owner=is_order_owner(obj, actor)))
        return Response(OrderSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(request=OrderUpdateSerializer, responses={200: OrderSerializer})
    def partial_update(self, request, pk=None):
        actor = actor_from_request(request)

        ser = OrderUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        status_value = data.pop("order_status", None)
        paid_amount = data.pop("paid_amount", None)

        OrderService.update_order(
            order_id=pk,
            actor=actor,
            status=status_value,
            fields=data,
            paid_amount=paid_amount,
        )

        obj = get_order_or_404(pk)
        return Response(OrderSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(responses={204: OpenApiResponse(description="Deleted")})
    def destroy(self, request, pk=None):
        actor = actor_from_request(request)
        OrderService.delete_order(order_id=pk, actor=actor)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["get"], url_path="report")
    def report(self, request, pk=None):
        actor = actor_from_request(request)
        return Response(ReportAssembler.build(order_id=pk, actor=actor), status=status.HTTP_200_OK)
