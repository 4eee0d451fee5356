"""
Unit tests for command parsing.
"""

import pytest

from marketplace.protocol.command import Command, CommandKind
from marketplace.protocol.parser import CommandParser, parse_command


class TestCommandParser:
    """Tests for CommandParser / parse_command."""

    def test_parse_simple_command(self):
        """Test name and arguments split on spaces."""
        command = parse_command("list-item alice car 10.0")

        assert command.name == "list-item"
        assert command.arguments == ("alice", "car", "10.0")

    def test_parse_quoted_arguments(self):
        """Test that quoted spans keep their spaces and lose their quotes."""
        command = parse_command('placeBid "item 123" "100 dollars"')

        assert command.name == "placeBid"
        assert list(command.arguments) == ["item 123", "100 dollars"]

    def test_parse_collapses_spaces(self):
        """Test leading, trailing and repeated spaces."""
        command = parse_command("  a   b  ")

        assert command.name == "a"
        assert list(command.arguments) == ["b"]

    def test_parse_empty_input(self):
        """Test that blank input gives an empty command, not None."""
        command = parse_command("")

        assert command == Command("", ())
        assert command.is_empty

    def test_parse_whitespace_only(self):
        command = parse_command("     ")

        assert command.name == ""
        assert command.arguments == ()

    def test_parse_no_arguments(self):
        command = parse_command("list-items")

        assert command.name == "list-items"
        assert command.arguments == ()

    def test_unterminated_quote_runs_to_end(self):
        """Test that an open quote ends at end of input without error."""
        command = parse_command('list-item alice "red sports car 5')

        assert command.name == "list-item"
        assert command.arguments == ("alice", "red sports car 5")

    def test_quote_inside_token_is_stripped(self):
        command = parse_command('view-bids 1"2"3')

        assert command.arguments == ("123",)

    def test_empty_quotes_make_empty_argument(self):
        command = parse_command('list-item alice "" 5')

        assert command.arguments == ("alice", "", "5")

    def test_multiple_commands_parse_as_one_line(self):
        """Test that concatenated commands become one name + many arguments."""
        command = parse_command("list-items list-items")

        assert command.name == "list-items"
        assert command.arguments == ("list-items",)

    def test_tokens_are_not_stripped_of_other_whitespace(self):
        """Only the space character separates tokens."""
        command = parse_command("a\tb c")

        assert command.name == "a\tb"
        assert command.arguments == ("c",)

    @pytest.mark.parametrize("raw, expected", [
        ("a", ["a"]),
        ('"a b"', ["a b"]),
        ('"a b" c', ["a b", "c"]),
        ('x "" y', ["x", "", "y"]),
    ])
    def test_tokenize(self, raw, expected):
        assert CommandParser.tokenize(raw) == expected


class TestCommandKind:
    """Tests for CommandKind lookup."""

    @pytest.mark.parametrize("name, kind", [
        ("list-item", CommandKind.LIST_ITEM),
        ("list-items", CommandKind.LIST_ITEMS),
        ("buy-item", CommandKind.BUY_ITEM),
        ("bid-item", CommandKind.BID_ITEM),
        ("view-bids", CommandKind.VIEW_BIDS),
        ("remove-item", CommandKind.REMOVE_ITEM),
    ])
    def test_known_names(self, name, kind):
        assert CommandKind.from_name(name) is kind
        assert Command(name).kind is kind

    @pytest.mark.parametrize("name", ["", "LIST-ITEMS", "placeBid", "list_items"])
    def test_unknown_names(self, name):
        assert CommandKind.from_name(name) is CommandKind.UNKNOWN

    def test_command_is_immutable(self):
        command = Command("list-items")

        with pytest.raises(AttributeError):
            command.name = "buy-item"
