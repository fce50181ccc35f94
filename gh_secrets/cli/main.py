"""CLI entrypoint for gh-secrets."""
import sys
import argparse
import logging

from ..secrets.domains.config_loader import ConfigError, load_credentials
from ..secrets.domains.github_client import GitHubSecretClient, TransportError
from ..secrets.workflows.secret_operations import (
    STAGE_ENCRYPT,
    STAGE_PUBLIC_KEY,
    STAGE_REQUEST,
    STAGE_VALIDATE,
    SetOutcome,
    read_batch_file,
    set_secret,
    set_secrets,
)
from .output import (
    print_deleted,
    print_error,
    print_failure,
    print_failure_message,
    print_result,
    print_set,
)
from .validators import (
    InvalidSecretNameError,
    MalformedURLError,
    resolve_target,
    validate_secret_name,
)

VERSION = "0.1.0"

VISIBILITY_CHOICES = ("all", "private", "selected")

# Labels for set sequences that failed before getting an API result
LOCAL_ERROR_LABELS = {
    STAGE_VALIDATE: "Error on secret name:",
    STAGE_ENCRYPT: "Error on encrypt:",
    STAGE_REQUEST: "Error on request:",
}

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _get_client() -> GitHubSecretClient:
    """Build an API client from the credentials in ~/.gh-secrets or the environment."""
    return GitHubSecretClient(load_credentials())


def _report_set(outcome: SetOutcome) -> None:
    """Print the outcome of one set sequence."""
    if outcome.ok:
        print_set(outcome.name)
    elif outcome.error is not None:
        label = LOCAL_ERROR_LABELS.get(outcome.stage, "Error:")
        print_failure_message(label, f"{outcome.name}: {outcome.error}")
    elif outcome.stage == STAGE_PUBLIC_KEY:
        print_failure("Error on get public key:", outcome.result)
    else:
        print_failure("Error on set secret:", outcome.result)


def cmd_list(args):
    """List all secrets of a repository/organization."""
    target = resolve_target(args.url)
    result = _get_client().list_secrets(target.path_slice)

    if result.ok:
        print_result(result)
    else:
        print_failure("Error on get secrets:", result)
        sys.exit(1)


def cmd_show(args):
    """Show a single secret of a repository/organization."""
    validate_secret_name(args.name)
    target = resolve_target(args.url)
    result = _get_client().fetch_secret(target.path_slice, args.name)

    if result.ok:
        print_result(result)
    else:
        print_failure("Error on get secret:", result)
        sys.exit(1)


def cmd_set(args):
    """Create or update a secret with an encrypted value."""
    validate_secret_name(args.name)
    target = resolve_target(args.url)
    outcome = set_secret(_get_client(), target, args.name, args.value, visibility=args.visibility)

    _report_set(outcome)
    if not outcome.ok:
        sys.exit(1)


def cmd_set_all(args):
    """Create or update every secret listed in a dotenv file."""
    target = resolve_target(args.url)

    try:
        secrets = read_batch_file(args.file)
    except FileNotFoundError as e:
        print_error(str(e))
        sys.exit(1)

    if not secrets:
        print(f"No secrets found in {args.file}")
        return

    outcomes = set_secrets(
        _get_client(), target, secrets, visibility=args.visibility, on_outcome=_report_set
    )

    succeeded = sum(1 for outcome in outcomes if outcome.ok)
    print(f"{succeeded} of {len(outcomes)} secrets set")
    if succeeded != len(outcomes):
        sys.exit(1)


def cmd_delete(args):
    """Delete a secret by name."""
    validate_secret_name(args.name)
    target = resolve_target(args.url)
    result = _get_client().delete_secret(target.path_slice, args.name)

    if result.ok:
        print_deleted(args.name)
    else:
        print_failure("Error on delete:", result)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-secrets",
        usage="%(prog)s <command> [options] <url>",
        description="Manage GitHub Actions secrets of a repository or organization",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gh-secrets list https://github.com/owner/repository-name
  gh-secrets show SECRET_NAME https://github.com/owner/repository-name
  gh-secrets set SECRET_NAME value https://github.com/owner/repository-name
  gh-secrets setAll secrets.env https://github.com/owner/repository-name
  gh-secrets delete SECRET_NAME https://github.com/owner/repository-name

URLs:
  https://github.com/owner                  organization secrets
  https://github.com/owner/repository-name  repository secrets

Credentials (environment or ~/.gh-secrets):
  GH_USERNAME               GitHub username
  GH_PERSONAL_ACCESS_TOKEN  Personal access token

Exit codes:
  0 - Success
  1 - Runtime error (missing credentials, network, API error, etc.)
  2 - Usage error (invalid arguments, malformed URL, invalid secret name)
        """
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"%(prog)s {VERSION}"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log requests and configuration details to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    list_parser = subparsers.add_parser(
        "list",
        help="Lists all secrets available in a repository/organization without revealing their encrypted values"
    )
    list_parser.add_argument("url", help="Repository or organization URL")
    list_parser.set_defaults(handler=cmd_list)

    show_parser = subparsers.add_parser(
        "show",
        help="Gets a single secret from a repository/organization without revealing its encrypted value"
    )
    show_parser.add_argument("name", help="Secret name")
    show_parser.add_argument("url", help="Repository or organization URL")
    show_parser.set_defaults(handler=cmd_show)

    set_parser = subparsers.add_parser(
        "set",
        help="Creates or updates a secret in a repository/organization with an encrypted value"
    )
    set_parser.add_argument("name", help="Secret name (format: [A-Za-z_][A-Za-z0-9_]*)")
    set_parser.add_argument("value", help="Secret value, encrypted before it is sent")
    set_parser.add_argument("url", help="Repository or organization URL")
    set_parser.set_defaults(handler=cmd_set)

    set_all_parser = subparsers.add_parser(
        "setAll",
        help="Creates or updates a batch of secrets in a repository/organization with encrypted values from a file"
    )
    set_all_parser.add_argument("file", help="Dotenv file with one KEY=value per line")
    set_all_parser.add_argument("url", help="Repository or organization URL")
    set_all_parser.set_defaults(handler=cmd_set_all)

    for secret_parser in (set_parser, set_all_parser):
        secret_parser.add_argument(
            "--visibility",
            choices=VISIBILITY_CHOICES,
            help="Organization secrets only: which repositories can use the secret (default: private)"
        )

    delete_parser = subparsers.add_parser(
        "delete",
        help="Deletes a secret in a repository/organization using the secret name"
    )
    delete_parser.add_argument("name", help="Secret name")
    delete_parser.add_argument("url", help="Repository or organization URL")
    delete_parser.set_defaults(handler=cmd_delete)

    return parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (credentials, network, API error, missing batch file)
        2 - Usage errors (invalid arguments, malformed URL, invalid secret name)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        args.handler(args)
    except (MalformedURLError, InvalidSecretNameError) as e:
        print_error(str(e))
        sys.exit(2)
    except (ConfigError, TransportError) as e:
        print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
