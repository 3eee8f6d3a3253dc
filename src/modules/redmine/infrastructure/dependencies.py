"""Redmine module dependencies."""

from src.modules.redmine.domain.ports import RedmineGatewayFactory
from src.modules.redmine.infrastructure.client import create_redmine_client
from src.modules.redmine.infrastructure.verifier import RedmineCredentialVerifier


def get_redmine_client_factory() -> RedmineGatewayFactory:
    return create_redmine_client


def get_credential_verifier() -> RedmineCredentialVerifier:
    return RedmineCredentialVerifier(create_redmine_client)
