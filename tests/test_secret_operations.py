"""Tests for the set / setAll workflows."""
import base64
from unittest import mock

import pytest
import requests
from nacl import public

from gh_secrets.cli.validators import resolve_target
from gh_secrets.secrets.domains.config_loader import Credentials
from gh_secrets.secrets.domains.github_client import GitHubSecretClient, TransportError
from gh_secrets.secrets.domains.models import ApiFailure, ApiSuccess
from gh_secrets.secrets.workflows.secret_operations import (
    STAGE_ENCRYPT,
    STAGE_PUBLIC_KEY,
    STAGE_PUT,
    STAGE_REQUEST,
    STAGE_VALIDATE,
    read_batch_file,
    set_secret,
    set_secrets,
)


@pytest.fixture
def private_key():
    return public.PrivateKey.generate()


@pytest.fixture
def client(private_key):
    """Mocked API client whose public key matches private_key."""
    key_b64 = base64.b64encode(bytes(private_key.public_key)).decode("utf-8")
    fake_client = mock.Mock(spec=GitHubSecretClient)
    fake_client.fetch_public_key.return_value = ApiSuccess(
        result={"key_id": "568250167242549743", "key": key_b64}, status_code=200
    )
    fake_client.put_secret.return_value = ApiSuccess(result="", status_code=201)
    return fake_client


@pytest.fixture
def repo_target():
    return resolve_target("https://github.com/acme/widgets")


def _decrypt(private_key, ciphertext_b64):
    return public.SealedBox(private_key).decrypt(base64.b64decode(ciphertext_b64)).decode("utf-8")


class TestSetSecret:
    """Test suite for set_secret."""

    def test_fetches_key_then_puts_encrypted_value(self, client, repo_target, private_key):
        """Test the public-key fetch followed by a PUT with the fetched key id."""
        outcome = set_secret(client, repo_target, "API_KEY", "secretvalue")

        client.fetch_public_key.assert_called_once_with("repos/acme/widgets")
        args, kwargs = client.put_secret.call_args
        path_slice, name, encrypted_value, key_id = args
        assert path_slice == "repos/acme/widgets"
        assert name == "API_KEY"
        assert key_id == "568250167242549743"
        assert kwargs == {"visibility": None}
        assert _decrypt(private_key, encrypted_value) == "secretvalue"

        assert outcome.ok
        assert outcome.stage == STAGE_PUT

    def test_public_key_failure_stops_before_put(self, client, repo_target):
        """Test that a failed key fetch is reported and nothing is submitted."""
        failure = ApiFailure(result={"message": "Not Found"}, status_code=404)
        client.fetch_public_key.return_value = failure

        outcome = set_secret(client, repo_target, "API_KEY", "value")

        client.put_secret.assert_not_called()
        assert not outcome.ok
        assert outcome.stage == STAGE_PUBLIC_KEY
        assert outcome.result is failure

    def test_put_failure_is_reported(self, client, repo_target):
        """Test that a failed PUT is returned in the outcome."""
        client.put_secret.return_value = ApiFailure(result={"message": "Forbidden"}, status_code=403)

        outcome = set_secret(client, repo_target, "API_KEY", "value")

        assert not outcome.ok
        assert outcome.stage == STAGE_PUT
        assert outcome.result.status_code == 403

    def test_invalid_public_key_is_encrypt_failure(self, client, repo_target):
        """Test that a malformed public key stops the sequence at encryption."""
        client.fetch_public_key.return_value = ApiSuccess(
            result={"key_id": "1", "key": "bm90LWEta2V5"}, status_code=200
        )

        outcome = set_secret(client, repo_target, "API_KEY", "value")

        client.put_secret.assert_not_called()
        assert outcome.stage == STAGE_ENCRYPT
        assert outcome.error is not None

    def test_org_target_defaults_visibility(self, client):
        """Test that organization secrets are sent with private visibility."""
        set_secret(client, resolve_target("https://github.com/acme"), "API_KEY", "value")

        assert client.put_secret.call_args.args[0] == "orgs/acme"
        assert client.put_secret.call_args.kwargs == {"visibility": "private"}

    def test_org_target_explicit_visibility(self, client):
        """Test that an explicit visibility is passed through for organizations."""
        set_secret(client, resolve_target("https://github.com/acme"), "API_KEY", "value", visibility="all")

        assert client.put_secret.call_args.kwargs == {"visibility": "all"}

    def test_repo_target_ignores_visibility(self, client, repo_target):
        """Test that repository secrets never carry a visibility."""
        set_secret(client, repo_target, "API_KEY", "value", visibility="all")

        assert client.put_secret.call_args.kwargs == {"visibility": None}

    def test_transport_error_propagates(self, client, repo_target):
        """Test that network failures are not swallowed by set_secret."""
        client.fetch_public_key.side_effect = TransportError("connection refused")

        with pytest.raises(TransportError):
            set_secret(client, repo_target, "API_KEY", "value")


class TestReadBatchFile:
    """Test suite for read_batch_file."""

    def test_reads_pairs_in_order(self, tmp_path):
        """Test that KEY=value lines are read in file order."""
        batch = tmp_path / "file.env"
        batch.write_text("A=1\nB=2\n")

        assert list(read_batch_file(batch).items()) == [("A", "1"), ("B", "2")]

    def test_dotenv_syntax(self, tmp_path):
        """Test that comments, quoting and export prefixes follow dotenv rules."""
        batch = tmp_path / "file.env"
        batch.write_text(
            "# comment\n"
            "export TOKEN=abc\n"
            "QUOTED=\"hello world\"\n"
            "SINGLE='a#b'\n"
            "\n"
            "PLAIN=value # trailing comment\n"
        )

        assert read_batch_file(batch) == {
            "TOKEN": "abc",
            "QUOTED": "hello world",
            "SINGLE": "a#b",
            "PLAIN": "value",
        }

    def test_keys_without_value_are_skipped(self, tmp_path, caplog):
        """Test that a bare KEY line is skipped with a warning."""
        batch = tmp_path / "file.env"
        batch.write_text("A=1\nBARE\n")

        with caplog.at_level("WARNING"):
            assert read_batch_file(batch) == {"A": "1"}

        assert "BARE" in caplog.text

    def test_missing_file_raises(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        missing = tmp_path / "missing.env"

        with pytest.raises(FileNotFoundError) as exc_info:
            read_batch_file(missing)

        assert "missing.env" in str(exc_info.value)


class TestSetSecrets:
    """Test suite for batch set."""

    def test_one_sequence_per_entry(self, client, repo_target, tmp_path, private_key):
        """Test that A=1 and B=2 produce two independent set sequences."""
        batch = tmp_path / "file.env"
        batch.write_text("A=1\nB=2")

        outcomes = set_secrets(client, repo_target, read_batch_file(batch))

        assert client.fetch_public_key.call_count == 2
        assert client.put_secret.call_count == 2
        names = [call.args[1] for call in client.put_secret.call_args_list]
        values = [_decrypt(private_key, call.args[2]) for call in client.put_secret.call_args_list]
        assert names == ["A", "B"]
        assert values == ["1", "2"]
        assert [outcome.ok for outcome in outcomes] == [True, True]

    def test_missing_file_makes_no_calls(self, client, repo_target, tmp_path):
        """Test that a missing batch file fails before any network call."""
        with pytest.raises(FileNotFoundError):
            set_secrets(client, repo_target, read_batch_file(tmp_path / "missing.env"))

        client.fetch_public_key.assert_not_called()
        client.put_secret.assert_not_called()

    def test_failure_does_not_block_later_entries(self, client, repo_target):
        """Test that a failing entry is recorded and the next entry still runs."""
        client.put_secret.side_effect = [
            ApiFailure(result={"message": "Unprocessable"}, status_code=422),
            ApiSuccess(result="", status_code=204),
        ]

        outcomes = set_secrets(client, repo_target, {"A": "1", "B": "2"})

        assert [outcome.name for outcome in outcomes] == ["A", "B"]
        assert [outcome.ok for outcome in outcomes] == [False, True]

    def test_transport_error_recorded_per_entry(self, client, repo_target):
        """Test that a network failure on one entry does not stop the batch."""
        good_key = client.fetch_public_key.return_value
        client.fetch_public_key.side_effect = [TransportError("timeout"), good_key]

        outcomes = set_secrets(client, repo_target, {"A": "1", "B": "2"})

        assert outcomes[0].stage == STAGE_REQUEST
        assert isinstance(outcomes[0].error, TransportError)
        assert outcomes[1].ok

    def test_on_outcome_called_for_each_entry(self, client, repo_target):
        """Test that the callback sees every outcome in order."""
        seen = []

        set_secrets(client, repo_target, {"A": "1", "B": "2"}, on_outcome=seen.append)

        assert [outcome.name for outcome in seen] == ["A", "B"]

    def test_empty_batch(self, client, repo_target):
        """Test that an empty batch makes no calls."""
        assert set_secrets(client, repo_target, {}) == []
        client.fetch_public_key.assert_not_called()

    def test_invalid_names_are_recorded_without_requests(self, client, repo_target):
        """Test that keys GitHub cannot accept never reach the API."""
        secrets = {
            "A?x": "1",
            "B/../../../../orgs/evil/actions/secrets/C": "2",
            "GOOD": "3",
        }

        outcomes = set_secrets(client, repo_target, secrets)

        assert [outcome.stage for outcome in outcomes] == [STAGE_VALIDATE, STAGE_VALIDATE, STAGE_PUT]
        assert all(outcome.error is not None for outcome in outcomes[:2])
        assert outcomes[2].ok
        assert client.fetch_public_key.call_count == 1
        client.put_secret.assert_called_once()
        assert client.put_secret.call_args.args[1] == "GOOD"


class TestSetSecretsOverHttp:
    """Batch set against a real client with a simulated HTTP session."""

    @staticmethod
    def _response(status_code, body, content_type="application/json; charset=utf-8"):
        response = requests.Response()
        response.status_code = status_code
        response.encoding = "utf-8"
        response.headers["Content-Type"] = content_type
        response._content = body.encode("utf-8")
        return response

    def test_non_json_error_body_does_not_stop_batch(self, private_key, repo_target):
        """Test that an HTML body labelled JSON fails one entry and the next still runs."""
        key_b64 = base64.b64encode(bytes(private_key.public_key)).decode("utf-8")
        session = mock.Mock(spec=requests.Session)
        session.request.side_effect = [
            self._response(502, "<html>bad gateway</html>"),
            self._response(200, '{"key_id": "kid-1", "key": "%s"}' % key_b64),
            self._response(201, ""),
        ]
        client = GitHubSecretClient(Credentials(username="octocat", token="ghp_test"), session=session)

        outcomes = set_secrets(client, repo_target, {"A": "1", "B": "2"})

        assert outcomes[0].stage == STAGE_PUBLIC_KEY
        assert outcomes[0].result.status_code == 502
        assert outcomes[0].result.result == "<html>bad gateway</html>"
        assert outcomes[1].ok
        assert session.request.call_count == 3
