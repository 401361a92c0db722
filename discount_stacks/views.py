import logging

from asgiref.sync import async_to_sync
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .services.discount_engine import make_engine_tester
from .services.identifier_set import IdentifierSetEditor
from .services.result_summary import render_summary
from .services.simulation import FORM_FIELDS, SimulationSession, Status

logger = logging.getLogger(__name__)

IDENTIFIER_ACTIONS = frozenset({"add", "remove", "clear"})


class IdentifierSetView(APIView):
    """Applies one edit to an identifier list and returns the new list.

    Body: ``{"identifiers": [...], "action": "add"|"remove"|"clear",
    "raw": "...", "identifier": "...", "id_type": "Product ID"}``.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        action = request.data.get("action")
        if action not in IDENTIFIER_ACTIONS:
            return Response(
                {"error": f"Unknown action '{action}'"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        current = request.data.get("identifiers") or []
        if not isinstance(current, list):
            return Response(
                {"error": "identifiers must be a list"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        for name in ("raw", "identifier", "id_type"):
            value = request.data.get(name)
            if value is not None and not isinstance(value, str):
                return Response(
                    {"error": f"{name} must be a string"},
                    status=status.HTTP_400_BAD_REQUEST,
                )

        changes = []
        editor = IdentifierSetEditor(
            [str(item) for item in current],
            on_change=changes.append,
            id_type=request.data.get("id_type") or "ID",
        )
        if action == "add":
            editor.submit_raw(request.data.get("raw") or "")
        elif action == "remove":
            editor.remove(request.data.get("identifier") or "")
        else:
            editor.clear()

        return Response(
            {
                "identifiers": changes[-1] if changes else editor.value,
                "changed": bool(changes),
                "label": editor.selected_label,
            },
            status=status.HTTP_200_OK,
        )


class DiscountStackTestView(APIView):
    """Runs a discount stack simulation against the discount engine.

    Form fields are validated locally; invalid forms never reach the
    engine. Engine failures are reported as a single ``error`` message.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request, stack_id):
        shop = request.query_params.get("shop")
        if not shop:
            return Response(
                {"error": "Missing shop query parameter"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        session = SimulationSession(
            is_open=True,
            on_close=None,
            discount_stack_label=request.data.get("stack_name") or str(stack_id),
            on_test=make_engine_tester(stack_id, shop),
        )
        for field in FORM_FIELDS:
            value = request.data.get(field)
            if isinstance(value, list):
                value = ",".join(str(item) for item in value)
            session.update_field(field, value)

        state = async_to_sync(session.submit)()

        if state.field_errors:
            logger.warning(
                "Rejected test form for stack %s: %s", stack_id, state.field_errors
            )
            return Response(
                {"errors": state.field_errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        if state.status is Status.ERROR:
            return Response(
                {"error": state.general_error},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        summary = render_summary(state.result)
        return Response(
            {
                "title": session.title,
                "request": session.last_request.as_payload(),
                "result": state.result,
                "summary": summary.as_dict() if summary else None,
            },
            status=status.HTTP_200_OK,
        )
