"""Tests for test-condition translation."""

from sh2c.core.errors import UnsupportedOperatorError
from sh2c.translator.conditions import (
    Condition,
    Operand,
    OperandKind,
    parse_condition,
    split_words,
    translate_condition,
)


class TestParseCondition:
    """Test tokenizing test expressions."""

    def test_quoted_words_atomic(self):
        """Double-quoted runs stay whole and lose their quotes."""
        assert split_words('"$a b" = "c d"') == ["$a b", "=", "c d"]

    def test_empty_quoted_word_kept(self):
        """An empty quoted string is still an operand."""
        assert split_words('-z ""') == ["-z", ""]

    def test_negation(self):
        """A leading ! sets the negation flag."""
        condition = parse_condition("! -d /tmp")
        assert condition.negated
        assert condition.words == ("-d", "/tmp")
        assert condition.operator == "-d"

    def test_quoted_bang_is_an_operand(self):
        """A quoted ! never negates."""
        condition = parse_condition('"!" = "!"')
        assert not condition.negated
        assert condition.words == ("!", "=", "!")
        assert translate_condition('"!" = "!"').code == 'strcmp("!", "!") == 0'

    def test_bang_as_binary_operand(self):
        """An unquoted ! in a complete binary test is compared, not negated."""
        condition = parse_condition("! = x")
        assert not condition.negated
        assert condition.operator == "="

    def test_negated_binary(self):
        condition = parse_condition('! "$a" = b')
        assert condition.negated
        assert condition.words == ("$a", "=", "b")

    def test_operands(self):
        """Operands are classified by kind."""
        condition = parse_condition("$x -eq $?")
        left, right = condition.operands
        assert left.kind is OperandKind.VARIABLE
        assert right.kind is OperandKind.SPECIAL

    def test_single_word_condition(self):
        """A lone word has no operator."""
        condition = Condition(source="a", words=("a",))
        assert condition.arity == 1
        assert condition.operator is None


class TestOperand:
    """Test operand rendering."""

    def test_literal(self):
        operand = Operand.from_word("hello")
        assert operand.as_string() == '"hello"'
        assert operand.as_integer() == 'atoi("hello")'

    def test_variable(self):
        operand = Operand.from_word("$n")
        assert operand.as_string() == "n"
        assert operand.as_integer() == "atoi(n)"
        assert operand.variables == ["n"]

    def test_special(self):
        operand = Operand.from_word("$?")
        assert operand.as_integer() == "sh2c_last_status"
        assert operand.as_string() == "sh2c_itoa(sh2c_last_status)"
        assert operand.string_helpers() == {"itoa"}

    def test_mixed_word_is_literal(self):
        """Text around a reference makes the whole word a literal."""
        assert Operand.from_word("$x.txt").kind is OperandKind.LITERAL


class TestTranslateCondition:
    """Test the generated C expressions."""

    def test_non_empty(self):
        result = translate_condition("$x")
        assert result.code == "strlen(x) > 0"
        assert result.variables == ["x"]

    def test_string_length(self):
        assert translate_condition("-n $x").code == "strlen(x) > 0"
        assert translate_condition('-z ""').code == 'strlen("") == 0'

    def test_file_predicates(self):
        """File tests call the stat helpers and request them."""
        result = translate_condition('-f "$path"')
        assert result.code == "sh2c_is_reg(path)"
        assert result.helpers == {"is_reg"}
        assert translate_condition("-d /tmp").code == 'sh2c_is_dir("/tmp")'
        assert translate_condition("-e x").helpers == {"file_exists"}

    def test_string_comparison(self):
        assert translate_condition('"$a" = hello').code == 'strcmp(a, "hello") == 0'
        assert translate_condition("$a == $b").code == "strcmp(a, b) == 0"
        assert translate_condition("$a != b").code == 'strcmp(a, "b") != 0'

    def test_numeric_comparison(self):
        """Numeric operators coerce both sides with atoi."""
        assert translate_condition("$n -gt 3").code == 'atoi(n) > atoi("3")'
        assert translate_condition("$n -le $m").code == "atoi(n) <= atoi(m)"

    def test_status_comparison(self):
        """$? compares as an int without conversion."""
        assert translate_condition("$? -eq 0").code == 'sh2c_last_status == atoi("0")'

    def test_status_string_context(self):
        """$? in a string comparison is converted with itoa."""
        result = translate_condition("$! = 5")
        assert result.code == 'strcmp(sh2c_itoa(sh2c_last_bg_pid), "5") == 0'
        assert "itoa" in result.helpers

    def test_negated(self):
        assert translate_condition("! -d /tmp").code == '!(sh2c_is_dir("/tmp"))'

    def test_unsupported_binary_operator(self):
        """An unknown operator gives constant false and an error."""
        result = translate_condition("$a -xx b")
        assert result.code == "0 /* unsupported test op: -xx */"
        assert isinstance(result.error, UnsupportedOperatorError)
        assert result.error.operator == "-xx"

    def test_unsupported_unary_operator(self):
        result = translate_condition("-x /bin/sh")
        assert result.code.startswith("0 /* unsupported test op")
        assert result.error is not None

    def test_too_many_words(self):
        result = translate_condition("a = b -o c")
        assert result.code == "0 /* unsupported test expression */"
        assert isinstance(result.error, UnsupportedOperatorError)

    def test_supported_forms_have_no_error(self):
        for expression in ("$x", "-n x", "a = b", "1 -ne 2", "-f f"):
            assert translate_condition(expression).error is None
