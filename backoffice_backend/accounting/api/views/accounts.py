# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

GET  /api/accounting/accounts/   list (bills.view)
POST /api/accounting/accounts/   create / update, versioned (accounts.edit)
"""

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response

from accounting.api.serializers import AccountSerializer, AccountWriteSerializer
from accounting.models import Account
from accounting.services.bill_service import save_account
from core.api.views import TenantAPIView
from permissions.roles import CAP_ACCOUNTS_EDIT, CAP_BILLS_VIEW


class AccountListCreateView(TenantAPIView):
    serializer_class = AccountWriteSerializer

    @property
    def required_capability(self):
        return CAP_BILLS_VIEW if self.request.method == "GET" else CAP_ACCOUNTS_EDIT

    @extend_schema(tags=["accounting"], responses=AccountSerializer(many=True))
    def get(self, request):
        qs = Account.objects.filter(tenant_id=self.tenant_id).order_by("name")
        return Response(AccountSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["accounting"],
        request=AccountWriteSerializer,
        responses={200: AccountSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = dict(s.validated_data)

        account = save_account(
            tenant_id=self.tenant_id,
            data=data,
            account_id=data.pop("id", None),
            expected_version=self.expected_version(request.data),
            recreate=data.pop("recreate", False),
            user=request.user,
        )

        body = AccountSerializer(account).data
        if account.is_deleted:
            body["_soft_deleted"] = True
        return Response(body, status=status.HTTP_200_OK)
