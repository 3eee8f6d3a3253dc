"""Credential verification against Redmine."""

from src.modules.credentials.domain.exceptions import CredentialVerificationError
from src.modules.redmine.domain.exceptions import RedmineApiError, RedmineErrorKind
from src.modules.redmine.domain.ports import RedmineGatewayFactory
from src.modules.redmine.infrastructure.client import create_redmine_client

_REASON_BY_KIND = {
    RedmineErrorKind.UNAUTHORIZED: "api_key_rejected",
    RedmineErrorKind.NOT_FOUND: "not_a_redmine_url",
    RedmineErrorKind.TIMEOUT: "timeout",
    RedmineErrorKind.NETWORK_ERROR: "unreachable",
}


class RedmineCredentialVerifier:
    """用 /my/account.json 校验 API Key，超时视为校验失败。"""

    def __init__(self, client_factory: RedmineGatewayFactory = create_redmine_client):
        self.client_factory = client_factory

    async def verify(self, base_url: str, api_key: str) -> str:
        client = self.client_factory(base_url, api_key)
        try:
            account = await client.get_current_account()
        except RedmineApiError as e:
            raise CredentialVerificationError(
                _REASON_BY_KIND.get(e.kind, e.kind.value)
            ) from e
        return str(account.id)
