"""Tests for the wire format and the resolution service."""

from __future__ import annotations

import os

import pytest

from retrace_server.config import NO_LINE, Failure, Request, Resolution, ServerConfig
from retrace_server.errors import MappingCorrupt, MappingUnavailable, RequestMalformed
from retrace_server.mapping.cache import TableCache
from retrace_server.protocol import format_response, parse_request
from retrace_server.service import ResolutionService
from retrace_server.sources import MappingLocator

MAPS_DIR = os.path.join(os.path.dirname(__file__), "fixtures", "maps")


class TestParseRequest:
    def test_version_and_class(self):
        assert parse_request("1.0.0 com.aerofs.a") == Request("1.0.0", "com.aerofs.a", None, NO_LINE)

    def test_full_request(self):
        assert parse_request("1.0.0 com.aerofs.a b 100\n") == Request("1.0.0", "com.aerofs.a", "b", 100)

    def test_extra_tokens_ignored(self):
        assert parse_request("1.0.0 a b 7 extra").line_number == 7

    def test_too_few_tokens(self):
        with pytest.raises(RequestMalformed, match="couldn't parse the request"):
            parse_request("1.0.0")
        with pytest.raises(RequestMalformed):
            parse_request("")

    def test_non_numeric_line(self):
        with pytest.raises(RequestMalformed, match="invalid line number"):
            parse_request("1.0.0 a b ten")

    @pytest.mark.parametrize("token", ["1_0", "\u0663", "1.5", "0x10", "--3"])
    def test_only_ascii_decimal_line_numbers(self, token):
        with pytest.raises(RequestMalformed, match="invalid line number"):
            parse_request(f"1.0.0 a b {token}")

    def test_signed_line_number(self):
        assert parse_request("1.0.0 a b +12").line_number == 12
        assert parse_request("1.0.0 a b -1").line_number == NO_LINE


class TestFormatResponse:
    def test_ok_with_methods(self):
        assert format_response(Resolution("com.foo.Bar", ["run", "stop"])) == "OK: com.foo.Bar run,stop"

    def test_ok_without_methods(self):
        assert format_response(Resolution("com.foo.Bar")) == "OK: com.foo.Bar "

    def test_error(self):
        assert format_response(Failure(MappingUnavailable("file not found: x"))) == "ERROR: file not found: x"


class TestMappingLocator:
    def test_path_convention(self):
        locator = MappingLocator("/maps")
        assert str(locator.path_for("0.4.116")) == "/maps/aerofs-0.4.116-public.map"

    def test_custom_template(self, tmp_path):
        locator = MappingLocator(str(tmp_path), "app-{version}.txt")
        assert locator.path_for("3") == tmp_path / "app-3.txt"

    def test_missing_file(self, tmp_path):
        with pytest.raises(MappingUnavailable, match="file not found"):
            MappingLocator(str(tmp_path)).open("9.9.9")

    @pytest.mark.parametrize("version", ["", ".", "..", "../etc", "a/b"])
    def test_rejects_path_like_versions(self, version):
        with pytest.raises(MappingUnavailable, match="invalid version"):
            MappingLocator(MAPS_DIR).path_for(version)


class TestResolutionService:
    @pytest.fixture(autouse=True)
    def setup(self):
        self.service = ResolutionService(MappingLocator(MAPS_DIR), TableCache(capacity=4))

    def test_handle_resolves(self):
        result = self.service.handle("1.0.0", "com.aerofs.a", "a", 50)
        assert result == Resolution("com.aerofs.daemon.Daemon", ["run"])

    def test_versions_are_independent(self):
        assert self.service.handle("2.0.0", "com.aerofs.z").class_name == "com.aerofs.daemon.Daemon"
        assert self.service.handle("2.0.0", "com.aerofs.a").class_name == "com.aerofs.a"
        assert self.service.handle("1.0.0", "com.aerofs.a").class_name == "com.aerofs.daemon.Daemon"

    def test_table_is_cached(self):
        self.service.handle("1.0.0", "com.aerofs.a")
        assert self.service.cache.versions() == ["1.0.0"]
        assert self.service.table_for("1.0.0") is self.service.table_for("1.0.0")

    def test_missing_version_is_failure(self):
        result = self.service.handle("9.9.9", "com.aerofs.a")
        assert isinstance(result, Failure)
        assert isinstance(result.error, MappingUnavailable)
        assert "file not found" in result.message
        assert "9.9.9" not in self.service.cache

    def test_corrupt_mapping_is_failure(self):
        result = self.service.handle("broken", "com.aerofs.a")
        assert isinstance(result, Failure)
        assert isinstance(result.error, MappingCorrupt)
        assert "broken" not in self.service.cache

    def test_handle_line(self):
        assert self.service.handle_line("1.0.0 com.aerofs.a c") == "OK: com.aerofs.daemon.Daemon isRunning,isStopped"
        assert self.service.handle_line("1.0.0 com.aerofs.b a 28") == "OK: com.aerofs.daemon.core.Core start"
        assert self.service.handle_line("1.0.0 unknown.Cls") == "OK: unknown.Cls "

    def test_handle_line_errors(self):
        assert self.service.handle_line("1.0.0") == "ERROR: couldn't parse the request"
        assert self.service.handle_line("1.0.0 a b x").startswith("ERROR: invalid line number")
        assert self.service.handle_line("9.9.9 a").startswith("ERROR: file not found: ")

    def test_from_config(self):
        service = ResolutionService.from_config(ServerConfig(maps_dir=MAPS_DIR, cache_size=7))
        assert service.cache.capacity == 7
        assert service.handle("2.0.0", "com.aerofs.z", "a", 3).method_names == ["run"]


class TestEndToEnd:
    def test_end_to_end_example(self, tmp_path):
        (tmp_path / "aerofs-1-public.map").write_text("com.foo.Bar -> a:\n    void doWork():10:20 -> b\n")
        service = ResolutionService(MappingLocator(str(tmp_path)))
        assert service.handle("1", "a", "b", 15) == Resolution("com.foo.Bar", ["doWork"])
        assert service.handle("1", "a", "b", 25) == Resolution("com.foo.Bar", ["b"])
        assert service.handle("1", "z") == Resolution("z", [])
