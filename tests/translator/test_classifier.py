"""Tests for statement classification."""

import pytest

from sh2c.translator.classifier import StatementKind, classify, classify_all


class TestClassify:
    """Test the ordered rule table."""

    @pytest.mark.parametrize(
        "text, kind",
        [
            ("ls -l | wc -l", StatementKind.PIPELINE),
            ("echo a | grep a", StatementKind.PIPELINE),
            ('echo "Hello, World!"', StatementKind.ECHO),
            ("echo", StatementKind.ECHO),
            ("y=$((x + 2))", StatementKind.ARITHMETIC_ASSIGNMENT),
            ('y="$((x + 2))"', StatementKind.ARITHMETIC_ASSIGNMENT),
            ("now=$(date)", StatementKind.COMMAND_SUBSTITUTION),
            ('now="$(date +%s)"', StatementKind.COMMAND_SUBSTITUTION),
            ("now=`date`", StatementKind.COMMAND_SUBSTITUTION),
            ("expr 1 + 2", StatementKind.EXPR),
            ("[ -f file.txt ]", StatementKind.TEST),
            ("[[ $a == b ]]", StatementKind.TEST),
            ("test -d /tmp", StatementKind.TEST),
            ("cd /tmp", StatementKind.CD),
            ("if [ $x -gt 1 ]", StatementKind.IF),
            ("then", StatementKind.THEN),
            ("do", StatementKind.THEN),
            ("else", StatementKind.ELSE),
            ("fi", StatementKind.FI),
            ("for i in 1 2 3", StatementKind.FOR),
            ("done", StatementKind.DONE),
            ("sleep 5 &", StatementKind.BACKGROUND),
            ('greeting="hello $name"', StatementKind.ASSIGNMENT),
            ("raw='$not_expanded'", StatementKind.ASSIGNMENT),
            ("count=5", StatementKind.ASSIGNMENT),
            ("empty=", StatementKind.ASSIGNMENT),
            ("pwd", StatementKind.INFORMATIONAL),
            ("ls -la", StatementKind.INFORMATIONAL),
            ("$HOME", StatementKind.VARIABLE_REFERENCE),
            ("printf $fmt", StatementKind.VARIABLE_REFERENCE),
            ("mkdir out", StatementKind.UNTRANSLATED),
            ("make && make install", StatementKind.UNTRANSLATED),
        ],
    )
    def test_kind(self, text, kind):
        assert classify(text).kind is kind

    def test_groups_captured(self):
        """Named groups of the matching rule travel with the statement."""
        statement = classify("for item in a 'b c' $x")
        assert statement.group("name") == "item"
        assert statement.group("words") == "a 'b c' $x"

    def test_arithmetic_groups(self):
        statement = classify("total=$(( a * 2 ))")
        assert statement.group("name") == "total"
        assert statement.group("expression") == " a * 2 "

    def test_quoted_arithmetic_not_a_command(self):
        """Double quotes around $((...)) keep it arithmetic."""
        statement = classify('y="$((x+2))"')
        assert statement.group("expression") == "x+2"
        assert statement.group("command") == ""

    def test_subshell_substitution_is_a_command(self):
        assert classify("out=$( (cd /tmp && ls) )").kind is StatementKind.COMMAND_SUBSTITUTION

    def test_background_command(self):
        assert classify("sleep 5 &").group("command") == "sleep 5"

    def test_test_condition(self):
        assert classify("[ -n $x ]").group("condition") == "-n $x"
        assert classify("[[ $a == b ]]").group("condition") == "$a == b"

    def test_normalized_text(self):
        """Whitespace and trailing semicolons are trimmed."""
        statement = classify("   echo hi ;  ", index=7)
        assert statement.text == "echo hi"
        assert statement.index == 7

    def test_empty_and_comments_dropped(self):
        assert classify("   ") is None
        assert classify("# comment") is None
        assert classify(";") is None

    def test_missing_group_default(self):
        """Optional groups that did not participate read as empty."""
        assert classify("echo").group("text") == ""


class TestClassifyAll:
    """Test classifying a record list."""

    def test_indices_follow_records(self):
        statements = classify_all(["echo a", "", "echo b"])
        assert [s.text for s in statements] == ["echo a", "echo b"]
        assert [s.index for s in statements] == [0, 2]
