import pytest

from s3_artifact_sync.exceptions import (
    ConfigurationError,
    ResolutionError,
    StripPrefixError,
    StripPrefixValidationError,
)
from s3_artifact_sync.resolve import (
    compile_strip_pattern,
    normalize_path,
    resolve_key,
    resolve_key_with,
    resolve_source,
    strip_wildcard_prefix,
    validate_strip_prefix,
)
from s3_artifact_sync.resolve.keys import join_key, pattern_to_regex


@pytest.mark.parametrize(
    "target,src_path,strip_prefix,expected",
    [
        ("", "/foo/bar", "/foo", "/bar"),
        ("/hello", "/foo/bar", "", "/hello/foo/bar"),
        ("hello", "/foo/bar", "/foo", "/hello/bar"),
        ("hello", "foo\\bar", "", "/hello/foo/bar"),
        ("hello", "foo\\bar\\world", "foo\\bar", "/hello/world"),
        ("hello", "foo\\bar\\world", "foo/bar", "/hello/world"),
        ("hello", "foo/bar/world", "foo\\bar", "/hello/world"),
    ],
)
def test_resolve_key_literal(target, src_path, strip_prefix, expected):
    assert resolve_key(target, src_path, strip_prefix) == expected


@pytest.mark.parametrize(
    "target,src_path,strip_prefix,expected",
    [
        ("deployment", "/harness/artifacts/build-123/module1/app.zip", "/harness/artifacts/*/", "/deployment/module1/app.zip"),
        (
            "releases",
            "/harness/artifacts/build-456/services/auth/v1.0/auth-service.zip",
            "/harness/artifacts/**/services/",
            "/releases/auth/v1.0/auth-service.zip",
        ),
        ("upload", "/harness/artifacts/build1/app.zip", "/harness/artifacts/build?/", "/upload/app.zip"),
        ("backup", "/harness/artifacts/build123/lib.zip", "/harness/artifacts/", "/backup/build123/lib.zip"),
        ("fallback", "/different/location/file.zip", "/harness/artifacts/*/", "/fallback/different/location/file.zip"),
    ],
)
def test_resolve_key_wildcard(target, src_path, strip_prefix, expected):
    assert resolve_key(target, src_path, strip_prefix) == expected


def test_literal_trim_is_not_segment_aware():
    assert resolve_key("out", "dist/bundle.js", "dist/bun") == "/out/dle.js"


def test_literal_prefix_that_does_not_occur_is_ignored():
    assert resolve_key("out", "build/app.js", "dist/") == "/out/build/app.js"


def test_keys_always_start_with_a_slash():
    assert resolve_key("", "app.js", "") == "/app.js"
    assert resolve_key("a//b/", "./c/../d.js", "") == "/a/b/d.js"


def test_join_key_of_nothing_is_root():
    assert join_key("", "") == "/"


class TestStripWildcardPrefix:
    @pytest.mark.parametrize(
        "path,pattern,expected",
        [
            ("/harness/artifacts/9f2c1b/module/app.zip", "/harness/artifacts/*/", "module/app.zip"),
            ("/harness/artifacts/hash/nightly/lib.zip", "/harness/artifacts/*/*/", "lib.zip"),
            ("/harness/artifacts/a/b/c/doc.zip", "/harness/artifacts/*/*/*/", "doc.zip"),
            ("/harness/artifacts/x/y/z/file.zip", "/harness/artifacts/**/", "file.zip"),
            ("/different/path/file.zip", "/harness/artifacts/*/", "/different/path/file.zip"),
            ("/harness/artifacts/build123/services/app.zip", "/harness/artifacts/*/services/", "app.zip"),
            ("/harness/artifacts/build1/app.zip", "/harness/artifacts/build?/", "app.zip"),
            ("/harness/artifacts/build/app.zip", "/harness/artifacts/", "build/app.zip"),
            ("/build/app.zip", "/*/", "app.zip"),
            (
                "/harness/artifacts/build-123/services/auth/v1.2/auth-service.zip",
                "/harness/artifacts/*/services/*/",
                "v1.2/auth-service.zip",
            ),
            (
                "/harness/artifacts/very/deep/nested/structure/file.zip",
                "/harness/artifacts/**/structure/",
                "file.zip",
            ),
            ("/harness/artifacts/build123/app.zip", "/harness/artifacts/build???/", "app.zip"),
            ("/harness/artifacts/build/app.zip", "", "/harness/artifacts/build/app.zip"),
        ],
    )
    def test_strip(self, path, pattern, expected):
        assert strip_wildcard_prefix(path, pattern) == expected

    def test_removing_the_entire_path_is_an_error(self):
        path = "/harness/artifacts/build/app.zip"
        with pytest.raises(StripPrefixError, match="removes entire path") as excinfo:
            strip_wildcard_prefix(path, "/harness/artifacts/build/app.zip")
        assert isinstance(excinfo.value, ResolutionError)
        assert excinfo.value.path == path

    def test_resolve_key_surfaces_entire_path_error(self):
        with pytest.raises(StripPrefixError):
            resolve_key("target", "/builds/one/app.zip", "/builds/*/app.zip")

    def test_pattern_without_trailing_slash_stops_on_segment_boundary(self):
        assert strip_wildcard_prefix("/builds/b1/app.zip", "/builds/b?") == "app.zip"
        assert strip_wildcard_prefix("/builds/b12/app.zip", "/builds/b?") == "/builds/b12/app.zip"

    def test_windows_style_pattern_is_normalized(self):
        assert strip_wildcard_prefix("/harness/artifacts/abc123/module/app.zip", "\\harness\\artifacts\\*/") == "module/app.zip"


class TestPatternToRegex:
    @pytest.mark.parametrize(
        "pattern,path,matches",
        [
            ("/harness/artifacts/*/", "/harness/artifacts/build123/", True),
            ("/harness/artifacts/**/", "/harness/artifacts/build123/module1/deep/", True),
            ("/harness/artifacts/build?/", "/harness/artifacts/build1/", True),
            ("/harness/artifacts/build?/", "/harness/artifacts/build123/", False),
            ("/harness/artifacts/*/", "/harness/artifacts//", False),
            ("/harness/build-*/", "/harness/build-42/", True),
        ],
    )
    def test_matching(self, pattern, path, matches):
        assert bool(pattern_to_regex(pattern).match(path)) is matches


class TestValidateStripPrefix:
    @pytest.mark.parametrize(
        "pattern,message",
        [
            ("harness/artifacts/*/", "must start with '/'"),
            ("/" + "very-long-directory-name/" * 15 + "*/", "too long"),
            ("/" + "*/" * 21, "too many wildcards"),
            ("/harness//artifacts/*/", "empty segment"),
            ("/harness/**artifacts/*/", "standalone directory segment"),
            ("\\\\harness\\\\artifacts\\\\*/", "empty segment"),
            ("C:\\\\harness\\\\artifacts\\\\*/", "must start with '/'"),
        ],
    )
    def test_rejects(self, pattern, message):
        with pytest.raises(StripPrefixValidationError, match=message):
            validate_strip_prefix(pattern)

    def test_validation_errors_are_configuration_errors(self):
        with pytest.raises(ConfigurationError):
            validate_strip_prefix("relative/*/")

    @pytest.mark.parametrize(
        "pattern",
        ["/harness/artifacts/*/", "\\harness\\artifacts\\*/", "/a/**/b/", "/" + "*/" * 20],
    )
    def test_accepts(self, pattern):
        validate_strip_prefix(pattern)


class TestCompileStripPattern:
    def test_wildcard_needs_leading_slash_and_wildcard(self):
        assert compile_strip_pattern("/builds/*/").is_wildcard
        assert not compile_strip_pattern("/builds/").is_wildcard
        assert not compile_strip_pattern("builds/*/").is_wildcard
        assert not compile_strip_pattern(None).is_wildcard

    def test_invalid_wildcard_fails_at_compile_time(self):
        with pytest.raises(StripPrefixValidationError):
            compile_strip_pattern("/builds//*/")

    def test_removed_span_is_reported(self):
        pattern = compile_strip_pattern("/harness/artifacts/*/")
        key, removed = resolve_key_with("deploy", "/harness/artifacts/b7/app.zip", pattern)
        assert key == "/deploy/app.zip"
        assert removed == "/harness/artifacts/b7/"

        key, removed = resolve_key_with("deploy", "/elsewhere/app.zip", pattern)
        assert key == "/deploy/elsewhere/app.zip"
        assert removed is None


@pytest.mark.parametrize(
    "source_dir,source,strip_prefix,expected",
    [
        ("/home/user/documents", "/home/user/documents/file.txt", "output-", "output-file.txt"),
        ("assets", "assets/images/logo.png", "", "images/logo.png"),
        ("/var/www/html", "/var/www/html/pages/index.html", "web", "webpages/index.html"),
        ("dist", "dist/js/app.js", "public", "publicjs/app.js"),
    ],
)
def test_resolve_source(source_dir, source, strip_prefix, expected):
    assert resolve_source(source_dir, source, strip_prefix) == expected


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/path/to/file.txt", "path/to/file.txt"),
        ("C:\\Users\\username\\Documents\\file.doc", "C:\\Users\\username\\Documents\\file.doc"),
        ("relative/path/to/file", "relative/path/to/file"),
        ("file.txt", "file.txt"),
        ("/root/directory/", "root/directory/"),
        ("no_slash", "no_slash"),
    ],
)
def test_normalize_path(path, expected):
    assert normalize_path(path) == expected


class TestLiteralStripOfWholePath:
    def test_absolute_path_stripped_by_itself_fails(self):
        path = "/harness/artifacts/build/app.zip"
        with pytest.raises(StripPrefixError, match="removes entire path") as excinfo:
            resolve_key("", path, path)
        assert excinfo.value.path == path

    def test_relative_path_stripped_by_itself_fails_even_with_target(self):
        with pytest.raises(StripPrefixError):
            resolve_key("deploy", "dist/app.zip", "dist/app.zip")

    def test_trailing_slash_remainder_fails(self):
        with pytest.raises(StripPrefixError):
            resolve_key("deploy", "dist/app/", "dist/app")


def test_star_inside_segment_needs_at_least_one_character():
    regex = pattern_to_regex("/a/build-*/")
    assert regex.match("/a/build-/x.zip") is None
    assert regex.match("/a/build-7/x.zip").group(0) == "/a/build-7/"
    assert resolve_key("t", "/a/build-/x.zip", "/a/build-*/") == "/t/a/build-/x.zip"
