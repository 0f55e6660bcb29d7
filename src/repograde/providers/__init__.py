"""Remote collaborators: repository access, hosted analysis services and text generation."""

from repograde.providers.base import (
    RemoteFileProvider,
    TextGenerationProvider,
    list_files_with_extensions,
    walk_repository,
)
from repograde.providers.codacy import CodacyClient
from repograde.providers.github import GitHubClient, GitHubError
from repograde.providers.rest import RESTClient, ServiceError
from repograde.providers.sonarcloud import SonarCloudClient

__all__ = [
    "RemoteFileProvider",
    "TextGenerationProvider",
    "walk_repository",
    "list_files_with_extensions",
    "GitHubClient",
    "GitHubError",
    "RESTClient",
    "ServiceError",
    "SonarCloudClient",
    "CodacyClient",
]
