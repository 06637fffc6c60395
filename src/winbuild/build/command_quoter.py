"""Windows command line quoting.

Most Windows programs (cl.exe, link.exe, rc.exe, moc.exe, but _not_ cmd.exe)
split their command line with CommandLineToArgvW() or the equivalent CRT
startup code. Backslashes are literal except when they precede a quotation
mark; every run of backslashes leading up to a quote is an escape sequence.
So backslashes in front of quotes must be doubled, while backslashes anywhere
else (directory separators) are left alone.
"""

from typing import Iterable, List


def quote_arg(arg: str) -> str:
    """Quote a single argument for CommandLineToArgvW().

    Args:
        arg: Argument to quote

    Returns:
        The argument unchanged if it has no spaces or quotes, otherwise the
        quoted and escaped argument. An empty argument becomes "" so it
        survives splitting.

    Example:
        >>> quote_arg('noSpaces')
        'noSpaces'
        >>> quote_arg('a b')
        '"a b"'
    """
    if arg and ' ' not in arg and '"' not in arg:
        return arg

    quoted = ['"']
    backslashes = 0
    for char in arg:
        if char == '\\':
            backslashes += 1
            continue
        if char == '"':
            # Double the run preceding the quote, then escape the quote
            quoted.append('\\' * (backslashes * 2 + 1))
        else:
            quoted.append('\\' * backslashes)
        quoted.append(char)
        backslashes = 0

    # The closing quote is a quote too
    quoted.append('\\' * (backslashes * 2))
    quoted.append('"')
    return ''.join(quoted)


def join_args(args: Iterable[str]) -> str:
    """Quote and join arguments into a Windows command line."""
    return ' '.join(quote_arg(str(arg)) for arg in args)


def split_command_line(command_line: str) -> List[str]:
    """Split a command line the way CommandLineToArgvW() does.

    Handles the rules for arguments after the program name:
    - 2n backslashes followed by a quote produce n backslashes, and the quote
      toggles quoting
    - 2n+1 backslashes followed by a quote produce n backslashes and a literal
      quote
    - backslashes not followed by a quote are literal
    - two quotes inside a quoted region produce one literal quote

    Args:
        command_line: Command line to split

    Returns:
        List of arguments
    """
    args: List[str] = []
    current: List[str] = []
    in_arg = False
    in_quotes = False
    backslashes = 0
    i = 0
    length = len(command_line)

    while i < length:
        char = command_line[i]

        if char == '\\':
            backslashes += 1
            in_arg = True
            i += 1
            continue

        if char == '"':
            current.append('\\' * (backslashes // 2))
            if backslashes % 2:
                current.append('"')
            elif in_quotes and i + 1 < length and command_line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
            backslashes = 0
            in_arg = True
            i += 1
            continue

        current.append('\\' * backslashes)
        backslashes = 0

        if char in ' \t' and not in_quotes:
            if in_arg:
                args.append(''.join(current))
                current = []
                in_arg = False
        else:
            current.append(char)
            in_arg = True
        i += 1

    current.append('\\' * backslashes)
    if in_arg:
        args.append(''.join(current))
    return args
