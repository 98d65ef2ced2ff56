"""Tests for Router."""

from fndev.router import Router, list_handler_files


class TestRouter:
    def test_lists_only_public_python_files(self, project):
        for name in ("hello.py", "users.py", "_private.py", ".hidden.py", "notes.txt"):
            (project / "api" / name).write_text("")
        assert list_handler_files(project / "api") == ["hello.py", "users.py"]

    def test_missing_api_dir_means_no_handlers(self, tmp_path):
        router = Router(tmp_path / "api")
        assert router.files == []
        assert router.match("/api/hello") is None

    def test_matches_stem_filename_and_subpaths(self, project):
        (project / "api" / "hello.py").write_text("")
        router = Router(project / "api")
        expected = project / "api" / "hello.py"

        assert router.match("/api/hello") == expected
        assert router.match("/api/hello.py") == expected
        assert router.match("/api/hello/extra/path") == expected

    def test_does_not_match_other_names(self, project):
        (project / "api" / "hello.py").write_text("")
        router = Router(project / "api")

        assert router.match("/api/hello-world") is None
        assert router.match("/api/") is None
        assert router.match("/hello") is None
        assert router.match("/apix/hello") is None

    def test_handler_deleted_after_startup_falls_through(self, project):
        script = project / "api" / "gone.py"
        script.write_text("")
        router = Router(project / "api")
        script.unlink()
        assert router.match("/api/gone") is None

    def test_file_added_after_startup_is_not_routed(self, project):
        router = Router(project / "api")
        (project / "api" / "late.py").write_text("")
        assert router.match("/api/late") is None

    def test_percent_encoded_path_and_custom_prefix(self, project):
        (project / "api" / "my file.py").write_text("")
        router = Router(project / "api", prefix="/fn/")
        assert router.match("/fn/my%20file") == project / "api" / "my file.py"
        assert router.match("/api/my%20file") is None
