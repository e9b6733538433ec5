# lab_core/lab/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from lab_core.common import permissions as gate
from lab_core.common.api.pagination import paginate
from lab_core.iam.actor import actor_from_request
from lab_core.lab.api.serializers import LabResultSerializer, ResultSubmitSerializer, ResultUpdateSerializer
from lab_core.lab.filters import LabResultFilter
from lab_core.lab.models import LabResult
from lab_core.lab.selectors import get_result_or_404, is_result_owner, results_visible_to
from lab_core.lab.services import ResultService


class LabResultViewSet(viewsets.GenericViewSet):
    """
    Results:
    - submit (upsert keyed by order+test; 201 created / 200 updated)
    - list/retrieve
    - partial update (edit / verify per role)
    - delete (admin, unverified only)
    """
    serializer_class = LabResultSerializer
    queryset = LabResult.objects.none()

    @extend_schema(
        responses={200: LabResultSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="order", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="test", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="patient", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="technician", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="overall_status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="is_verified", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        actor = actor_from_request(request)
        gate.require(actor, gate.RESULT_VIEW)

        f = LabResultFilter(request.query_params, queryset=results_visible_to(actor))
        if not f.is_valid():
            raise DRFValidationError(f.errors)

        return paginate(request, f.qs, LabResultSerializer)

    @extend_schema(request=ResultSubmitSerializer, responses={201: LabResultSerializer, 200: LabResultSerializer})
    def create(self, request):
        actor = actor_from_request(request)

        ser = ResultSubmitSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        result, created = ResultService.submit_result(
            order_id=data["order"],
            test_id=data["test"],
            result_data=[dict(row) for row in data["result_data"]],
            overall_status=data.get("overall_status"),
            comments=data.get("comments") or "",
            report_url=data.get("report_url"),
            actor=actor,
        )

        obj = get_result_or_404(result.id)
        return Response(
            LabResultSerializer(obj).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(responses={200: LabResultSerializer})
    def retrieve(self, request, pk=None):
        actor = actor_from_request(request)
        obj = get_result_or_404(pk)
        gate.require(actor, gate.RESULT_VIEW, gate.ResourceState(is_owner=is_result_owner(obj, actor)))
        return Response(LabResultSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(request=ResultUpdateSerializer, responses={200: LabResultSerializer})
    def partial_update(self, request, pk=None):
        actor = actor_from_request(request)

        ser = ResultUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        fields = dict(ser.validated_data)
        if "result_data" in fields:
            fields["result_data"] = [dict(row) for row in fields["result_data"]]

        ResultService.update_result(result_id=pk, fields=fields, actor=actor)

        obj = get_result_or_404(pk)
        return Response(LabResultSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(responses={204: OpenApiResponse(description="Deleted")})
    def destroy(self, request, pk=None):
        actor = actor_from_request(request)
        ResultService.delete_result(result_id=pk, actor=actor)
        return Response(status=status.HTTP_204_NO_CONTENT)
