"""Credential entity-model mapper."""

from src.core.infrastructure.database.mapper import BaseMapper
from src.modules.credentials.domain.entities import RedmineCredential
from src.modules.credentials.infrastructure.models import RedmineCredentialModel


class RedmineCredentialMapper(BaseMapper[RedmineCredential, RedmineCredentialModel]):
    """Credential entity-model mapper."""

    def to_domain(self, model: RedmineCredentialModel) -> RedmineCredential:
        return RedmineCredential(
            id=model.id,
            user_id=model.user_id,
            base_url=model.base_url,
            ciphertext=model.ciphertext,
            nonce=model.nonce,
            auth_tag=model.auth_tag,
            redmine_user_id=model.redmine_user_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def to_model(self, entity: RedmineCredential) -> RedmineCredentialModel:
        return RedmineCredentialModel(
            id=entity.id,
            user_id=entity.user_id,
            base_url=entity.base_url,
            ciphertext=entity.ciphertext,
            nonce=entity.nonce,
            auth_tag=entity.auth_tag,
            redmine_user_id=entity.redmine_user_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
