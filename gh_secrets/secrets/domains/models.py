"""Domain models for secret management."""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Target:
    """Organization or repository that secret operations apply to."""
    owner: str
    repo: Optional[str] = None

    @property
    def is_org_path(self) -> bool:
        return self.repo is None

    @property
    def path_slice(self) -> str:
        """API path prefix, e.g. 'orgs/acme' or 'repos/acme/widgets'."""
        if self.is_org_path:
            return f"orgs/{self.owner}"
        return f"repos/{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PublicKey:
    """Public key issued by GitHub for encrypting secrets of a target."""
    key: str  # base64
    key_id: str

    @classmethod
    def from_result(cls, body: Dict[str, Any]) -> "PublicKey":
        return cls(key=body["key"], key_id=body["key_id"])


@dataclass(frozen=True)
class SecretRecord:
    """A secret as submitted to GitHub; the value is already encrypted."""
    name: str
    encrypted_value: str


@dataclass(frozen=True)
class ApiResult:
    """Outcome of a single API call.

    Use the ApiSuccess / ApiFailure variants; `status` tells them apart
    and `to_dict()` renders the envelope printed by the CLI.
    """
    result: Any
    status_code: int
    status = "ko"

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "status": self.status,
            "statusCode": self.status_code,
        }


@dataclass(frozen=True)
class ApiSuccess(ApiResult):
    status = "ok"


@dataclass(frozen=True)
class ApiFailure(ApiResult):
    status = "ko"


def make_result(status_code: int, result: Any) -> ApiResult:
    """Build the result variant matching an HTTP status code."""
    if 200 <= status_code <= 299:
        return ApiSuccess(result=result, status_code=status_code)
    return ApiFailure(result=result, status_code=status_code)
