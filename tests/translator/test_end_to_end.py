"""
End-to-end tests: translate, compile with the system C compiler, run.

Skipped when the configured compiler (SH2C_C_COMPILER, default ``cc``) is
not installed.
"""

import os

import pytest

from sh2c.translator.executor import CompilationError, ProgramRunner
from sh2c.translator.runtime import render_preamble, resolve_helpers


class TestPrograms:
    """Test observable behaviour of generated programs."""

    def test_hello_world(self, run_script):
        result = run_script('echo "Hello, World!"')
        assert result.success, result.stderr
        assert result.stdout == "Hello, World!\n"

    def test_literal_echoes(self, run_script):
        result = run_script("""
            echo one
            echo "two  spaces"
            echo '100% $literal'
            echo
        """)
        assert result.stdout == "one\ntwo  spaces\n100% $literal\n\n"

    def test_arithmetic(self, run_script):
        result = run_script('x=5\ny=$((x+2))\necho "$y"')
        assert result.stdout == "7\n"

    def test_quoted_arithmetic_assignment(self, run_script):
        result = run_script('x=5\ny="$((x+2))"\necho "$y"')
        assert result.stdout == "7\n"

    def test_embedded_arithmetic(self, run_script):
        result = run_script('n=4\necho "n+1=$((n+1)), n*n=$((n*n))"')
        assert result.stdout == "n+1=5, n*n=16\n"

    def test_escaped_reference(self, run_script):
        env = dict(os.environ, HOME="zz")
        result = run_script('echo "\\$HOME=$HOME"\necho \\$HOME | cat', env=env)
        assert result.stdout == "$HOME=zz\n$HOME\n"

    def test_argument_order(self, run_script):
        result = run_script('a=1; b=2; echo "$b-$a-$b"')
        assert result.stdout == "2-1-2\n"

    def test_file_test(self, run_script, tmp_path):
        script = 'if [ -f file.txt ]; then echo "found"; fi\necho $?'
        assert run_script(script).stdout == "1\n"
        (tmp_path / "file.txt").write_text("x")
        assert run_script(script).stdout == "found\n0\n"

    def test_directory_is_not_regular_file(self, run_script, tmp_path):
        (tmp_path / "sub").mkdir()
        result = run_script("[ -f sub ]; echo $?\n[ -d sub ]; echo $?\n[ -e sub ]; echo $?")
        assert result.stdout == "1\n0\n0\n"

    def test_string_and_numeric_tests(self, run_script):
        result = run_script("""
            a=abc
            [ "$a" = abc ]; echo $?
            [ "$a" != abc ]; echo $?
            [ -z "$a" ]; echo $?
            [ -n "$a" ]; echo $?
            [ 10 -gt 9 ]; echo $?
            [ 3 -le 2 ]; echo $?
            [ abc -eq 0 ]; echo $?
        """)
        assert result.stdout.split() == ["0", "1", "1", "0", "0", "1", "0"]

    def test_bang_operand(self, run_script):
        result = run_script('[ "!" = "!" ]; echo $?\n[ ! "a" = "b" ]; echo $?')
        assert result.stdout == "0\n0\n"
        assert result.stderr == ""

    def test_if_else(self, run_script):
        result = run_script("""
            n=3
            if [ $n -gt 5 ]; then
                echo big
            else
                echo small
            fi
        """)
        assert result.stdout == "small\n"

    def test_for_loop(self, run_script):
        result = run_script("for i in 1 'two words' 3; do echo \"item $i\"; done")
        assert result.stdout == "item 1\nitem two words\nitem 3\n"

    def test_loop_with_arithmetic(self, run_script):
        result = run_script("""
            total=0
            for n in 1 2 3 4; do
                total=$((total + n))
            done
            echo "$total"
        """)
        assert result.stdout == "10\n"

    def test_pipeline_output_and_status(self, run_script):
        result = run_script("""
            echo first
            printf 'a\\nb\\nc\\n' | wc -l
            true | false
            echo $?
            false | true
            echo $?
        """)
        lines = result.stdout.split("\n")
        assert lines[0] == "first"
        assert lines[1].strip() == "3"
        assert lines[2:4] == ["1", "0"]

    def test_failing_middle_stage_does_not_stop_chain(self, run_script):
        result = run_script("echo x | sh -c 'exit 3' | echo after\necho $?")
        assert result.stdout == "after\n0\n"

    def test_command_substitution(self, run_script):
        result = run_script('x=$(echo hello; echo world)\necho "got $x"\ny=$(exit 4)\necho $?')
        assert result.stdout == "got hello\nworld\n4\n"

    def test_expr(self, run_script):
        assert run_script("expr 6 \\* 7").stdout == "42\n"

    def test_cd(self, run_script, tmp_path):
        (tmp_path / "sub").mkdir()
        result = run_script("cd sub\necho $?\ncd /definitely/not/here\necho $?\n[ -d ../sub ]; echo $?")
        assert result.stdout == "0\n1\n0\n"

    def test_environment_import(self, run_script):
        env = dict(os.environ, GREETING="hi there")
        result = run_script('echo "$GREETING!"', env=env)
        assert result.stdout == "hi there!\n"

    def test_background_job(self, run_script):
        result = run_script("sleep 0 &\necho $?\n[ $! -gt 0 ]; echo $?")
        assert result.stdout == "0\n0\n"

    def test_untranslated_program_still_runs(self, run_script):
        result = run_script("mkdir out\necho after\nfi")
        assert result.success
        assert result.stdout == "after\n"

    def test_informational_builtin(self, run_script):
        assert run_script("whoami").stdout == "whoami\n"


class TestProgramRunner:
    """Test the compile-and-run harness itself."""

    def test_compilation_error(self, runner):
        """Invalid C raises with the compiler output attached."""
        with pytest.raises(CompilationError) as info:
            runner.execute("int main(void) { return }")
        assert info.value.stderr

    def test_stdin_and_exit_status(self, runner):
        code = (
            "#include <stdio.h>\n"
            "int main(void) { int c = getchar(); putchar(c); return 3; }\n"
        )
        result = runner.execute(code, stdin="z")
        assert result.stdout == "z"
        assert result.returncode == 3
        assert not result.success

    def test_timeout(self, runner, settings):
        runner.settings = settings.model_copy(update={"RUN_TIMEOUT": 0.5})
        code = "#define _POSIX_C_SOURCE 200809L\n#include <unistd.h>\nint main(void) { sleep(5); return 0; }\n"
        result = runner.execute(code)
        assert result.timed_out
        assert result.returncode == -1

    def test_missing_compiler(self, settings):
        runner = ProgramRunner(settings.model_copy(update={"C_COMPILER": "no-such-cc-sh2c"}))
        with pytest.raises(CompilationError, match="C compiler not found"):
            runner.execute("int main(void) { return 0; }")


PIPE_CHAIN_MAIN = r"""
int main(void) {
    const char* const ok[] = {"exit 4", "exit 5", "exit 6"};
    int statuses[3] = {-7, -7, -7};
    int rc = sh2c_execute_pipe_chain(3, ok, statuses);
    printf("%d %d %d %d\n", rc, statuses[0], statuses[1], statuses[2]);

    const char* const broken[] = {"exit 1", NULL, "exit 2"};
    int untouched[3] = {-7, -7, -7};
    int before = dup(0);
    close(before);
    rc = sh2c_execute_pipe_chain(3, broken, untouched);
    int after = dup(0);
    close(after);
    printf("%d %d %d %d %d %d\n", rc, untouched[0], untouched[1], untouched[2],
           before == after, (int) waitpid(-1, NULL, WNOHANG));
    return 0;
}
"""


class TestPipeChainRuntime:
    """Test the pipe chain helper directly from a C harness."""

    def test_statuses_and_rollback(self, runner):
        """Each stage's code is stored; a failed setup returns -1 and leaks nothing."""
        helpers = resolve_helpers({"pipe_chain"})
        lines = render_preamble(helpers)
        lines.append(PIPE_CHAIN_MAIN)
        lines.extend(helper.definition for helper in helpers)
        result = runner.execute("\n".join(lines))
        assert result.success, result.stderr
        assert result.stdout == "6 4 5 6\n-1 -7 -7 -7 1 -1\n"
