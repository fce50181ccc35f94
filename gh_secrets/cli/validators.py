"""Input validation for CLI arguments."""
import re
import logging

from ..secrets.domains.models import Target

logger = logging.getLogger(__name__)

# https://github.com/<owner>[/<repo>] with an optional trailing slash
GITHUB_URL_PATTERN = re.compile(
    r'^https://github\.com/([a-zA-Z0-9_.-]+)(?:/([a-zA-Z0-9_.-]+))?/?$'
)

# GitHub secret names: letters, digits, underscores, not starting with a digit
SECRET_NAME_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class MalformedURLError(ValueError):
    """URL does not point to a GitHub organization or repository."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            "wrong URL, expected URLs: https://github.com/owner "
            "or https://github.com/owner/repository-name"
        )


class InvalidSecretNameError(ValueError):
    """Secret name is not accepted by GitHub."""
    pass


def resolve_target(url: str) -> Target:
    """
    Resolve a GitHub web URL into the organization or repository it names.

    Args:
        url: URL such as https://github.com/owner or https://github.com/owner/repo

    Returns:
        Target whose path_slice is 'orgs/<owner>' or 'repos/<owner>/<repo>'

    Raises:
        MalformedURLError: If the URL is not of either shape
    """
    match = GITHUB_URL_PATTERN.match(url or "")
    if not match:
        raise MalformedURLError(url)

    owner, repo = match.group(1), match.group(2)
    target = Target(owner=owner, repo=repo)
    logger.debug(f"Resolved {url} to {target.path_slice}")
    return target


def validate_secret_name(name: str) -> None:
    """
    Validate secret name matches GitHub requirements.

    GitHub allows only: [A-Za-z0-9_], and names cannot start with a number.

    Raises:
        InvalidSecretNameError: If validation fails
    """
    if not name:
        raise InvalidSecretNameError("Secret name cannot be empty")

    if not SECRET_NAME_PATTERN.match(name):
        raise InvalidSecretNameError(
            f"Invalid secret name '{name}'. "
            "Allowed characters: letters, numbers, underscores (_); "
            "names cannot start with a number"
        )
