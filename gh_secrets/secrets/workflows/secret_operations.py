"""Workflows for setting secrets: key fetch, encryption and submit."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from dotenv import dotenv_values

from ...cli.validators import InvalidSecretNameError, validate_secret_name
from ..domains.github_client import GitHubSecretClient, TransportError
from ..domains.models import ApiResult, PublicKey, SecretRecord, Target
from ..domains.sealed_box import EncryptionError, encrypt_secret

logger = logging.getLogger(__name__)

# Organization secrets need a visibility; GitHub rejects the PUT without one
DEFAULT_ORG_VISIBILITY = "private"

STAGE_VALIDATE = "validate"
STAGE_PUBLIC_KEY = "public-key"
STAGE_ENCRYPT = "encrypt"
STAGE_PUT = "put"
STAGE_REQUEST = "request"


@dataclass
class SetOutcome:
    """Result of one set sequence.

    `stage` names the last step that ran. `result` is the API result of that
    step, or None when the step failed locally (`error` is then set).
    """
    name: str
    stage: str
    result: Optional[ApiResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.stage == STAGE_PUT and self.result is not None and self.result.ok


def set_secret(
    client: GitHubSecretClient,
    target: Target,
    name: str,
    value: str,
    visibility: Optional[str] = None,
) -> SetOutcome:
    """
    Create or update one secret.

    Fetches the target's public key, encrypts the value locally and submits
    it. Stops at the first failing step and reports it in the outcome.

    Raises:
        TransportError: If a request cannot be sent
    """
    key_result = client.fetch_public_key(target.path_slice)
    if not key_result.ok:
        logger.debug(f"Public key fetch for {name} failed with {key_result.status_code}")
        return SetOutcome(name=name, stage=STAGE_PUBLIC_KEY, result=key_result)

    try:
        public_key = PublicKey.from_result(key_result.result)
        record = SecretRecord(name=name, encrypted_value=encrypt_secret(value, public_key.key))
    except (EncryptionError, KeyError, TypeError) as e:
        return SetOutcome(name=name, stage=STAGE_ENCRYPT, error=e)

    # Repository secrets have no visibility
    if not target.is_org_path:
        visibility = None
    elif visibility is None:
        visibility = DEFAULT_ORG_VISIBILITY

    put_result = client.put_secret(
        target.path_slice,
        record.name,
        record.encrypted_value,
        public_key.key_id,
        visibility=visibility,
    )
    return SetOutcome(name=name, stage=STAGE_PUT, result=put_result)


def read_batch_file(path: Union[str, Path]) -> Dict[str, str]:
    """
    Read KEY=value pairs from a dotenv file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    batch_path = Path(path)
    if not batch_path.is_file():
        raise FileNotFoundError(f"The file does not exist: {path}")

    secrets = {}
    for key, value in dotenv_values(batch_path).items():
        if value is None:
            logger.warning(f"Skipping {key}: no value in {path}")
            continue
        secrets[key] = value
    return secrets


def set_secrets(
    client: GitHubSecretClient,
    target: Target,
    secrets: Dict[str, str],
    visibility: Optional[str] = None,
    on_outcome: Optional[Callable[[SetOutcome], None]] = None,
) -> List[SetOutcome]:
    """
    Set each secret in turn.

    Entries are independent: an invalid name or a failure on one entry is
    recorded in its outcome and does not stop the remaining entries.

    Args:
        client: API client
        target: Organization or repository
        secrets: Secret names mapped to plaintext values
        visibility: Organization secret visibility
        on_outcome: Called with each outcome as soon as it is known

    Returns:
        One outcome per entry, in input order
    """
    logger.info(f"Setting {len(secrets)} secrets on {target.path_slice}")

    outcomes = []
    for name, value in secrets.items():
        try:
            validate_secret_name(name)
            outcome = set_secret(client, target, name, value, visibility=visibility)
        except InvalidSecretNameError as e:
            outcome = SetOutcome(name=name, stage=STAGE_VALIDATE, error=e)
        except TransportError as e:
            outcome = SetOutcome(name=name, stage=STAGE_REQUEST, error=e)

        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    return outcomes
