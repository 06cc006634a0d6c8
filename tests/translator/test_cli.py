"""Tests for the sh2c command line interface."""

import logging

import pytest

from sh2c.translator.cli import main


@pytest.fixture(autouse=True)
def _reset_sh2c_logger():
    """main() installs handlers on the sh2c logger; remove them afterwards."""
    yield
    logger = logging.getLogger("sh2c")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def script(tmp_path):
    def _script(text: str, name: str = "script.sh"):
        path = tmp_path / name
        path.write_text(text)
        return path
    return _script


class TestMain:
    """Test exit codes and outputs of main()."""

    def test_success_writes_output(self, script, tmp_path, capsys):
        source = script('echo "hi"\n')
        output = tmp_path / "hi.c"
        assert main([str(source), "-o", str(output)]) == 0
        assert "int main(void) {" in output.read_text()
        assert f"sh2c: info: wrote {output}" in capsys.readouterr().err

    def test_quiet(self, script, tmp_path, capsys):
        source = script("echo hi\n")
        assert main([str(source), "-o", str(tmp_path / "q.c"), "-q"]) == 0
        assert capsys.readouterr().err == ""

    def test_default_output(self, script, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SH2C_OUTPUT_PATH", raising=False)
        source = script("echo hi\n")
        assert main([str(source), "-q"]) == 0
        assert (tmp_path / "output.c").exists()

    def test_stdout(self, script, tmp_path, capsys):
        source = script("echo hi\n")
        assert main([str(source), "--stdout"]) == 0
        captured = capsys.readouterr()
        assert captured.out.startswith("// Generated by sh2c")
        assert not (tmp_path / "output.c").exists()

    def test_missing_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "absent.sh"), "-o", str(tmp_path / "x.c")]) == 1
        assert "sh2c: fatal:" in capsys.readouterr().err

    def test_translation_errors_exit_two(self, script, tmp_path, capsys):
        source = script("mkdir out\necho after\nfi\n")
        output = tmp_path / "partial.c"
        assert main([str(source), "-o", str(output)]) == 2
        err = capsys.readouterr().err
        assert "sh2c: error: untranslated command: 'mkdir out'" in err
        assert "sh2c: error: 'fi' without a matching open block" in err
        # the program is still written
        assert "// UNTRANSLATED: mkdir out" in output.read_text()

    def test_no_overwrite(self, script, tmp_path):
        source = script("echo hi\n")
        output = tmp_path / "exists.c"
        output.write_text("keep")
        assert main([str(source), "-o", str(output), "--no-overwrite"]) == 1
        assert output.read_text() == "keep"

    def test_log_level_debug(self, script, tmp_path, capsys):
        source = script("echo hi\n")
        assert main([str(source), "-o", str(tmp_path / "d.c"), "--log-level", "debug"]) == 0
        assert "sh2c: debug:" in capsys.readouterr().err
