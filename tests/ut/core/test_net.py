"""URL scheme 校验与 JSON 请求测试"""

from __future__ import annotations

import io
import urllib.error
from unittest import mock

import pytest

from ads.core.exceptions import ValidationError
from ads.utils.net import get_json, validate_url_scheme


class TestValidateUrlScheme:
    def test_https_ok(self) -> None:
        validate_url_scheme("https://registry.npmjs.org")

    def test_file_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme("file:///etc/passwd")

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="registry"):
            validate_url_scheme("ftp://x", context="registry")


class _Resp(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class TestGetJson:
    def test_parses_body_and_passes_timeout(self) -> None:
        with mock.patch("urllib.request.urlopen", return_value=_Resp(b'{"a": 1}')) as urlopen:
            assert get_json("https://r.test/x", timeout=3, headers={"Accept": "application/json"}) == {"a": 1}
        req = urlopen.call_args.args[0]
        assert req.get_header("Accept") == "application/json"
        assert urlopen.call_args.kwargs["timeout"] == 3

    def test_http_error_wrapped(self) -> None:
        err = urllib.error.HTTPError("https://r.test/x", 404, "Not Found", {}, None)
        with mock.patch("urllib.request.urlopen", side_effect=err):
            with pytest.raises(ConnectionError, match="HTTP 404"):
                get_json("https://r.test/x", timeout=3)

    def test_timeout_wrapped(self) -> None:
        with mock.patch("urllib.request.urlopen", side_effect=TimeoutError("timed out")):
            with pytest.raises(ConnectionError):
                get_json("https://r.test/x", timeout=1)

    def test_non_json_wrapped(self) -> None:
        with mock.patch("urllib.request.urlopen", return_value=_Resp(b"<html>")):
            with pytest.raises(ConnectionError, match="不是合法 JSON"):
                get_json("https://r.test/x", timeout=1)
