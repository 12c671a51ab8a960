"""Tests for the secrets file parser."""
import pytest

from vaultenv.secrets.domains.errors import SecretsFileIOError, SecretsFileParseError
from vaultenv.secrets.domains.models import Secret
from vaultenv.secrets.domains.secret_list import parse_secret, read_secret_list, var_name_from_key


class TestParseSecret:
    """Test suite for single-line parsing."""

    def test_derived_name(self):
        """Test PATH#KEY derives an upper-case name from path and key."""
        assert parse_secret("api/creds#token") == Secret(
            path="api/creds", key="token", var_name="API_CREDS_TOKEN"
        )

    def test_derived_name_replaces_dashes(self):
        """Test '-' and '/' both become '_' in derived names."""
        assert parse_secret("my-app/db-main#pass-word").var_name == "MY_APP_DB_MAIN_PASS_WORD"

    def test_derived_name_keeps_other_punctuation(self):
        """Test characters other than '/' and '-' pass through unchanged."""
        assert parse_secret("a.b/c:d#e.f").var_name == "A.B_C:D_E.F"

    def test_explicit_name_verbatim(self):
        """Test NAME=PATH#KEY keeps NAME without any case transformation."""
        secret = parse_secret("db_Pass=db/creds#password")

        assert secret == Secret(path="db/creds", key="password", var_name="db_Pass")

    def test_splits_at_first_equals_and_hash(self):
        """Test only the first '=' and first '#' are separators."""
        secret = parse_secret("NAME=path#key#with=extra")

        assert secret.var_name == "NAME"
        assert secret.path == "path"
        assert secret.key == "key#with=extra"

    def test_empty_name_falls_back_to_derived(self):
        """Test '=PATH#KEY' behaves like an unnamed secret."""
        assert parse_secret("=app/db#user").var_name == "APP_DB_USER"

    @pytest.mark.parametrize("line", ["api/creds", "NAME=api/creds", "", "NAME="])
    def test_missing_hash_fails(self, line):
        """Test a line without '#' after the optional name is rejected."""
        with pytest.raises(ValueError) as exc_info:
            parse_secret(line)

        assert "does not contain '#' separator" in str(exc_info.value)

    def test_hash_only_in_name_fails(self):
        """Test a '#' before the '=' does not count as the separator."""
        with pytest.raises(ValueError):
            parse_secret("NA#ME=api/creds")

    def test_error_includes_offending_text(self):
        """Test the error message names the text that failed to parse."""
        with pytest.raises(ValueError) as exc_info:
            parse_secret("NAME=no-separator-here")

        assert "'no-separator-here'" in str(exc_info.value)

    @pytest.mark.parametrize("line", ["#key", "NAME=#key", "path#", "NAME=path#"])
    def test_empty_path_or_key_fails(self, line):
        """Test path and key must both be non-empty."""
        with pytest.raises(ValueError) as exc_info:
            parse_secret(line)

        assert "empty" in str(exc_info.value)

    def test_var_name_from_key(self):
        assert var_name_from_key("db/creds", "password") == "DB_CREDS_PASSWORD"


class TestReadSecretList:
    """Test suite for reading a whole secrets file."""

    def test_reads_all_lines_in_order(self, tmp_path):
        """Test every line becomes one Secret, in file order."""
        secrets_file = tmp_path / "app.secrets"
        secrets_file.write_text("DB_PASS=db/creds#password\napi/creds#token\n")

        assert read_secret_list(str(secrets_file)) == [
            Secret(path="db/creds", key="password", var_name="DB_PASS"),
            Secret(path="api/creds", key="token", var_name="API_CREDS_TOKEN"),
        ]

    def test_crlf_line_endings(self, tmp_path):
        """Test Windows line endings don't leak into keys."""
        secrets_file = tmp_path / "app.secrets"
        secrets_file.write_bytes(b"a/b#c\r\nd/e#f\r\n")

        secrets = read_secret_list(str(secrets_file))

        assert [s.key for s in secrets] == ["c", "f"]

    def test_empty_file(self, tmp_path):
        """Test an empty file yields no secrets."""
        secrets_file = tmp_path / "empty.secrets"
        secrets_file.write_text("")

        assert read_secret_list(str(secrets_file)) == []

    def test_missing_file_raises_io_error(self, tmp_path):
        """Test an unreadable file is reported with its name."""
        missing = str(tmp_path / "missing.secrets")

        with pytest.raises(SecretsFileIOError) as exc_info:
            read_secret_list(missing)

        assert exc_info.value.filename == missing

    def test_directory_raises_io_error(self, tmp_path):
        """Test a directory cannot be read as secrets file."""
        with pytest.raises(SecretsFileIOError):
            read_secret_list(str(tmp_path))

    def test_first_bad_line_aborts(self, tmp_path):
        """Test one malformed line rejects the whole file."""
        secrets_file = tmp_path / "bad.secrets"
        secrets_file.write_text("a/b#c\nbroken\nd/e#f\n")

        with pytest.raises(SecretsFileParseError) as exc_info:
            read_secret_list(str(secrets_file))

        assert exc_info.value.filename == str(secrets_file)
        assert "line 2" in exc_info.value.reason
        assert "'broken'" in exc_info.value.reason

    def test_blank_line_is_malformed(self, tmp_path):
        """Test there is no blank-line syntax."""
        secrets_file = tmp_path / "blank.secrets"
        secrets_file.write_text("a/b#c\n\nd/e#f\n")

        with pytest.raises(SecretsFileParseError):
            read_secret_list(str(secrets_file))
