"""
=============================================================================
COMMAND PARSER
=============================================================================

Turns one line of client text into a Command.

=============================================================================
TOKENIZING RULES
=============================================================================

    list-item alice "red car" 10.0
    └───┬───┘ └─┬─┘ └──┬──┘ └┬─┘
      name    arg0   arg1   arg2

    - A space outside quotes separates tokens
    - Runs of spaces count as one separator; leading/trailing ones vanish
    - A double quote toggles "inside quotes" and is dropped from the token
    - Inside quotes, spaces are ordinary characters
    - An unterminated quote simply runs to the end of the line
    - A bare "" is an empty argument, not nothing

    Blank input gives Command("", ()), never None.

=============================================================================
"""

from typing import List

from .command import Command


QUOTE = '"'
SEPARATOR = " "


class CommandParser:
    """
    Stateless line parser.

    Kept as a class to mirror how the server holds its collaborators;
    parse_command() is the shortcut for one-off use.
    """

    def parse(self, raw: str) -> Command:
        """
        Parse a raw line into a Command.

        Args:
            raw: Decoded client input.

        Returns:
            The command; first token is the name, the rest are arguments.
        """
        tokens = self.tokenize(raw)
        if not tokens:
            return Command("", ())
        return Command(tokens[0], tuple(tokens[1:]))

    @staticmethod
    def tokenize(raw: str) -> List[str]:
        """Split a line into tokens, honoring double-quoted spans."""
        tokens: List[str] = []
        current: List[str] = []
        # A quoted span opens a token even if it turns out empty ("")
        started = False
        inside_quote = False

        for char in raw:
            if char == QUOTE:
                inside_quote = not inside_quote
                started = True
            elif char == SEPARATOR and not inside_quote:
                if started:
                    tokens.append("".join(current))
                    current = []
                    started = False
            else:
                current.append(char)
                started = True

        if started:
            tokens.append("".join(current))

        return tokens


_parser = CommandParser()


def parse_command(raw: str) -> Command:
    """Parse one line of client input with a shared CommandParser."""
    return _parser.parse(raw)
